"""Daily paper batches, written by the content fetcher."""

from datetime import date

from fastapi import APIRouter, HTTPException, status

from paperbot.dependencies import Papers
from paperbot.schemas.papers import Paper, PaperBatch

router = APIRouter()


@router.get("/papers/{paper_date}", response_model=PaperBatch)
async def get_papers(paper_date: date, papers: Papers) -> PaperBatch:
    """Get the batch stored for a date."""
    batch = await papers.get_batch(paper_date)
    if batch is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No papers found for {paper_date}",
        )
    return batch


@router.put("/papers/{paper_date}", response_model=PaperBatch)
async def put_papers(paper_date: date, body: list[Paper], papers: Papers) -> PaperBatch:
    """
    Store the papers for a date, replacing any existing batch.

    Dates must be UTC calendar dates; the notification run looks papers up
    by the UTC date of the moment it runs.
    """
    return await papers.put_batch(paper_date, body)
