"""CLI entry point for the EduForge educational content generator.

Usage:
  eduforge start -t "Python Basics"     Generate a book (foreground)
  eduforge start --defaults             Scheduled run with configured defaults
  eduforge status <run-id>              Show the progress of a run
  eduforge runs                         List recent runs
  eduforge serve                        Start the HTTP API
  eduforge schedule-info                Print the cron line for scheduled runs
"""

import asyncio
import logging
import sys

import click
from rich.table import Table

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    failure_panel,
    run_summary_panel,
    stage_table,
    chapter_table,
    status_text,
)
from config.exceptions import EduForgeError, WorkflowCancelledError
from config.logging_config import setup_logging
from config.settings import Settings, get_settings
from models.enums import RunStatus
from models.progress_store import ProgressStore
from workflow.callbacks import RichProgressCallback

console = get_console()


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = get_settings()
    setup_logging(level=level, log_dir=settings.log_dir)


def _open_store(settings: Settings) -> ProgressStore:
    return ProgressStore(settings.progress_db_path, settings.progress_overwrite_existing)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """EduForge: long-form educational books from a single topic.

    \b
    Examples:
      eduforge start -t "Rust for Web Developers" -w 20000
      eduforge status edu-1718000000000-a1b2c3d4e
      eduforge serve --port 5000
    """
    _init_logging(verbose)


# ---------------------------------------------------------------------------
# start command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--topic", "-t", default=None, help="Book topic")
@click.option("--audience", "-a", default=None, help="Target audience")
@click.option("--words", "-w", default=None, type=int, help="Target total word count (1000-100000)")
@click.option("--defaults", is_flag=True, help="Use configured defaults without prompting (for cron)")
@click.option("--no-research", is_flag=True, help="Skip the Wikipedia research step")
def start(topic, audience, words, defaults, no_research):
    """Generate a complete book and wait for it to finish.

    Examples:
      eduforge start -t "Advanced JavaScript Programming"
      eduforge start -t "Statistics" -a "High school students" -w 30000
      eduforge start --defaults
    """
    from workflow.graph import make_request, new_run_id, run_workflow

    settings = get_settings()
    if no_research:
        settings = settings.model_copy(update={"research_enabled": False})

    if topic is None and not defaults:
        topic = click.prompt("Topic", default=settings.default_topic)

    try:
        request = make_request(topic, audience, words, settings)
    except EduForgeError as e:
        console.print(f"[error]{e}[/]")
        sys.exit(2)

    run_id = new_run_id()
    console.print(app_header())
    console.print()
    console.print(command_panel("Start run", {
        "Run": run_id,
        "Topic": request.topic,
        "Audience": request.target_audience,
        "Target": f"{request.target_word_count:,} words",
        "Formats": ", ".join(settings.export_formats),
    }))
    console.print()

    store = _open_store(settings)
    try:
        cb = RichProgressCallback(console=console)
        cb.start()
        try:
            final_state = asyncio.run(run_workflow(
                request, run_id=run_id, settings=settings, store=store, callback=cb,
            ))
        finally:
            cb.stop()
    except KeyboardInterrupt:
        console.print(f"\n[warning]Interrupted. Check progress with: eduforge status {run_id}[/]")
        sys.exit(130)
    except WorkflowCancelledError:
        console.print("\n[warning]Run cancelled[/]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[error]Run failed: {e}[/]")
        logging.getLogger(__name__).exception("Run %s failed", run_id)
        sys.exit(1)

    result = final_state.get("publish_result")
    console.print()
    if result is not None and result.book_generated:
        rendered = final_state.get("rendered_book")
        extra = "".join(
            f"\n  {fmt.upper()}: [accent]{path}[/]" for fmt, path in rendered.extra_paths.items()
        ) if rendered else ""
        console.print(success_panel("Book generated", (
            f"  Words: [stat.value]{result.final_word_count:,}[/]\n"
            f"  Quality score: [stat.value]{result.quality_score:g}[/]\n"
            f"  HTML: [accent]{result.artifact_path}[/] "
            f"[muted]({result.file_size:,} bytes)[/]{extra}"
        )))
    else:
        reason = result.rejection_reason if result is not None else "unknown"
        score = f"{result.quality_score:g}" if result is not None else "?"
        console.print(failure_panel("Not approved for publication", (
            f"  Quality score: [stat.value]{score}[/]\n"
            f"  Reason: {reason}"
        )))
        sys.exit(1)


# ---------------------------------------------------------------------------
# status / runs commands
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("run_id")
def status(run_id):
    """Show progress, stages and completed chapters of a run.

    Example:
      eduforge status edu-1718000000000-a1b2c3d4e
    """
    store = _open_store(get_settings())
    record = store.find(run_id)
    if record is None:
        console.print(f"[error]No progress found for workflow {run_id}[/]")
        sys.exit(1)

    console.print(app_header())
    console.print()
    console.print(run_summary_panel(record))
    console.print(stage_table(record))
    if record.completed_chapter_details:
        console.print(chapter_table(record))
    if record.errors:
        console.print("\n[error]Errors:[/]")
        for error in record.errors:
            console.print(f"  [muted]-[/] {error}")
    if record.result:
        console.print(f"\nBook: [accent]{record.result.get('artifactPath', '')}[/]")


@cli.command()
@click.option("--status", "status_filter", default=None,
              type=click.Choice([s.value for s in RunStatus]), help="Only runs with this status")
@click.option("--limit", "-l", default=20, help="Maximum runs to show")
def runs(status_filter, limit):
    """List recent runs, newest first."""
    store = _open_store(get_settings())
    records = store.list_runs(
        status=RunStatus(status_filter) if status_filter else None, limit=limit,
    )
    if not records:
        console.print("[warning]No runs yet. Start one with [info]eduforge start[/].[/]")
        return

    table = Table(title="Runs", show_lines=False, border_style="dim")
    table.add_column("Run", style="chapter.num")
    table.add_column("Topic", style="bold")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Started", style="muted")

    for r in records:
        outcome = f" [muted]({r.outcome.value})[/]" if r.outcome else ""
        table.add_row(
            r.workflow_id,
            r.topic,
            status_text(r.status.value) + outcome,
            f"{r.progress_percentage}%",
            f"{r.total_words_generated:,}",
            r.start_time,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# serve / schedule-info commands
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", "-p", default=None, type=int, help="Port (default from settings)")
def serve(host, port):
    """Start the HTTP API for starting and polling runs."""
    import uvicorn
    from api.main import create_app

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[info]Serving EduForge API on http://{host}:{port}[/]")
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


@cli.command(name="schedule-info")
def schedule_info():
    """Print the crontab line for the daily scheduled run."""
    settings = get_settings()
    console.print(command_panel("Scheduled run", {
        "Cron": settings.schedule_cron,
        "Timezone": settings.schedule_timezone,
        "Topic": settings.default_topic,
        "Audience": settings.default_audience,
        "Target": f"{settings.default_target_word_count:,} words",
    }))
    console.print("\nAdd to crontab:")
    click.echo(f"CRON_TZ={settings.schedule_timezone}")
    click.echo(f"{settings.schedule_cron} eduforge start --defaults")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
