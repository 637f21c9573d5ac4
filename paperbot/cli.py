"""
paperbot CLI - Command line interface for running jobs.

Usage:
    paperbot --help                       Show all commands
    paperbot notify                       Run one notification pass now
    paperbot load-papers papers.json      Store today's papers from a JSON file
    paperbot subscribe +15551234567 --timezone America/New_York --time 09:00:00
    paperbot serve                        Start the API server
"""

import asyncio
import json
from datetime import date
from pathlib import Path

import typer

app = typer.Typer(
    name="paperbot",
    help="paperbot CLI - daily ML papers over WhatsApp",
    no_args_is_help=True,
)


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_skipped(message: str) -> None:
    """Print a skipped step message."""
    typer.echo(f"  ⏭️ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


@app.command()
def notify():
    """Send today's papers to users whose delivery window is open right now."""
    import httpx

    from paperbot.config import get_config, get_settings
    from paperbot.core.database import AsyncSessionLocal
    from paperbot.core.datetime_utils import utc_now
    from paperbot.core.exceptions import UpstreamFetchError
    from paperbot.core.logging import setup_logging
    from paperbot.services.notifier import NotificationOrchestrator, RunOutcome
    from paperbot.services.paper_store import PaperStore
    from paperbot.services.user_store import UserStore
    from paperbot.services.whatsapp_service import WhatsAppClient

    setup_logging()

    async def run():
        async with httpx.AsyncClient(timeout=30.0) as http_client:
            orchestrator = NotificationOrchestrator(
                content_store=PaperStore(AsyncSessionLocal),
                user_store=UserStore(AsyncSessionLocal),
                channel=WhatsAppClient.from_settings(http_client, get_settings()),
                config=get_config(),
            )
            return await orchestrator.run_daily_notification(utc_now())

    try:
        summary = asyncio.run(run())
    except UpstreamFetchError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    if summary.outcome in (RunOutcome.NO_CONTENT, RunOutcome.NO_USERS):
        _print_skipped(summary.message)
    elif summary.outcome == RunOutcome.PARTIAL_FAILURE:
        _print_error(summary.message)
        raise typer.Exit(2)
    else:
        _print_success(f"{summary.message} ({summary.skipped} not due)")


@app.command("load-papers")
def load_papers(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of papers"),
    paper_date: str | None = typer.Option(
        None, "--date", "-d", help="Date key (YYYY-MM-DD), defaults to today's UTC date"
    ),
):
    """Store a day's papers from a JSON file (replaces any existing batch)."""
    from pydantic import TypeAdapter, ValidationError

    from paperbot.core.database import AsyncSessionLocal
    from paperbot.core.datetime_utils import content_date_key, utc_now
    from paperbot.core.exceptions import UpstreamFetchError
    from paperbot.core.logging import setup_logging
    from paperbot.schemas.papers import Paper
    from paperbot.services.paper_store import PaperStore

    setup_logging()

    try:
        papers = TypeAdapter(list[Paper]).validate_python(json.loads(path.read_text()))
    except (ValueError, ValidationError) as e:
        _print_error(f"Invalid papers file: {e}")
        raise typer.Exit(1)

    try:
        date_key = date.fromisoformat(paper_date) if paper_date else content_date_key(utc_now())
    except ValueError:
        _print_error(f"Invalid date: {paper_date}")
        raise typer.Exit(1)

    try:
        batch = asyncio.run(PaperStore(AsyncSessionLocal).put_batch(date_key, papers))
    except UpstreamFetchError as e:
        _print_error(str(e))
        raise typer.Exit(1)
    _print_success(f"Stored {len(batch.papers)} papers for {batch.date}")


@app.command()
def subscribe(
    phone_number: str = typer.Argument(..., help="Phone number in international format"),
    timezone: str = typer.Option("UTC", "--timezone", "-z", help="IANA timezone"),
    preferred_time: str = typer.Option("09:00:00", "--time", "-t", help="Local time HH:MM:SS"),
):
    """Add or update a subscriber."""
    from paperbot.core.database import AsyncSessionLocal
    from paperbot.core.datetime_utils import is_valid_timezone, parse_preferred_time
    from paperbot.core.exceptions import UpstreamFetchError
    from paperbot.services.user_store import UserStore

    if not is_valid_timezone(timezone):
        _print_error(f"Unknown timezone: {timezone}")
        raise typer.Exit(1)
    try:
        normalized = parse_preferred_time(preferred_time).strftime("%H:%M:%S")
    except ValueError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    try:
        user = asyncio.run(
            UserStore(AsyncSessionLocal).upsert_subscriber(
                phone_number, timezone=timezone, preferred_time=normalized
            )
        )
    except UpstreamFetchError as e:
        _print_error(str(e))
        raise typer.Exit(1)
    _print_success(f"{user.phone_number} gets papers at {user.preferred_time} {user.timezone}")


@app.command()
def migrate():
    """Run database migrations (alembic upgrade head)."""
    import subprocess

    result = subprocess.run(["alembic", "upgrade", "head"], check=False)
    raise typer.Exit(result.returncode)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable hot reload"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
):
    """Start the API server."""
    import subprocess

    cmd = ["uvicorn", "paperbot.main:app", "--host", "0.0.0.0", "--port", str(port)]
    if reload:
        cmd.append("--reload")

    subprocess.run(cmd, check=False)


if __name__ == "__main__":
    app()
