"""Command-line interface using Typer."""

import asyncio
from datetime import UTC, datetime
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from blueprint_engine import __version__
from blueprint_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="blueprint-engine",
    help="Blueprint Engine - habit blueprint generation CLI",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Blueprint Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Blueprint Engine - Generate habit blueprints from content and retry failures."""
    pass


def _build_worker():
    from blueprint_engine.main import build_retry_worker

    return build_retry_worker()


def _fmt_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


@app.command()
def worker() -> None:
    """Run the retry worker in the foreground until interrupted."""
    from blueprint_engine.config import settings

    console.print("[bold blue]Starting retry worker...[/bold blue]")
    console.print(
        f"[dim]Polling every {settings.retry_poll_interval_seconds}s, "
        f"batch size {settings.retry_batch_size}[/dim]"
    )

    try:
        asyncio.run(_build_worker().run_forever())
    except KeyboardInterrupt:
        console.print("[yellow]Retry worker stopped[/yellow]")


@app.command("process-once")
def process_once() -> None:
    """Process one batch of due retry jobs and show the outcomes."""
    results = asyncio.run(_build_worker().tick())

    if not results:
        console.print("[dim]No due retry jobs[/dim]")
        return

    table = Table(title="Processed Jobs")
    table.add_column("Status", style="cyan")
    table.add_column("Retry", justify="right")
    table.add_column("Next Attempt")
    table.add_column("Details")

    for result in results:
        table.add_row(
            result.status.value,
            str(result.retry_count) if result.retry_count is not None else "-",
            _fmt_time(result.next_retry_at),
            (result.error_message or (result.reason.value if result.reason else ""))[:60],
        )

    console.print(table)


@app.command()
def jobs(
    due: bool = typer.Option(False, "--due", "-d", help="Only show jobs that are due now"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of jobs to show"),
) -> None:
    """List queued retry jobs."""
    from sqlalchemy import select

    from blueprint_engine.db.models import RetryJobModel
    from blueprint_engine.db.session import get_session_context

    with get_session_context() as session:
        query = select(RetryJobModel).order_by(RetryJobModel.next_retry_at.asc()).limit(limit)
        if due:
            query = query.where(RetryJobModel.next_retry_at <= datetime.now(UTC))

        rows = session.execute(query).scalars().all()

        if not rows:
            console.print("[dim]No retry jobs found[/dim]")
            return

        table = Table(title="Retry Jobs")
        table.add_column("Job", style="dim", no_wrap=True)
        table.add_column("Blueprint", style="cyan", no_wrap=True)
        table.add_column("Retries", justify="right")
        table.add_column("Next Attempt")
        table.add_column("Error Type")
        table.add_column("Last Error")

        for row in rows:
            table.add_row(
                str(row.id)[:8] + "...",
                str(row.blueprint_id)[:8] + "...",
                str(row.retry_count),
                _fmt_time(row.next_retry_at),
                row.error_type or "-",
                (row.last_error or "-")[:50],
            )

        console.print(table)


@app.command()
def status(
    blueprint_id: str = typer.Argument(..., help="The blueprint ID to check"),
) -> None:
    """Show the status of a blueprint."""
    from blueprint_engine.adapters.store import SqlAlchemyBlueprintRepository

    try:
        blueprint_uuid = UUID(blueprint_id)
    except ValueError:
        console.print(f"[bold red]Invalid blueprint ID: {blueprint_id}[/bold red]")
        raise typer.Exit(code=1)

    blueprint = asyncio.run(SqlAlchemyBlueprintRepository().get_blueprint(blueprint_uuid))
    if blueprint is None:
        console.print(f"[bold red]Blueprint not found: {blueprint_id}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Blueprint Status")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("ID", str(blueprint.id))
    table.add_row("User", blueprint.user_id)
    table.add_row("Goal", blueprint.goal[:80])
    table.add_row("Source", blueprint.content_source[:80])
    table.add_row("Status", blueprint.status.value)
    table.add_row("Created", _fmt_time(blueprint.created_at))
    if blueprint.ai_output is not None:
        table.add_row("Sections", ", ".join(blueprint.ai_output.sections()) or "overview only")

    console.print(table)


@app.command()
def serve() -> None:
    """Run the API server."""
    import uvicorn

    from blueprint_engine.config import settings

    uvicorn.run(
        "blueprint_engine.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


@app.command("init-db")
def init_db() -> None:
    """Create any missing database tables."""
    from blueprint_engine.db.session import init_db as create_tables

    try:
        create_tables()
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]✓ Database ready[/bold green]")


if __name__ == "__main__":
    app()
