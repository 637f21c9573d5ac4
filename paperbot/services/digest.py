"""WhatsApp message body for a day's papers."""

from paperbot.schemas.papers import PaperBatch


def format_batch_date(batch: PaperBatch) -> str:
    """Long date for the header, e.g. "Tuesday, January 13, 2026"."""
    d = batch.date
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def render_digest(batch: PaperBatch, title: str, outro: str) -> str:
    """
    Render a batch as one WhatsApp message (WhatsApp *bold* markup).

    Output depends only on its arguments: the header date is the batch's
    date key, not the wall clock, so rendering the same batch twice gives
    the same bytes.
    """
    lines = [f"🤖 *{title}* - {format_batch_date(batch)}", ""]

    for index, paper in enumerate(batch.papers, start=1):
        lines.append(f"📄 *{index}. {paper.title}*")
        lines.append(f"👥 {', '.join(paper.authors)}")
        lines.append(paper.description)
        lines.append(f"🔗 {paper.link}")
        lines.append("")

    # Outro sits two blank lines below the last paper
    lines.append("")
    lines.append(outro)
    return "\n".join(lines)
