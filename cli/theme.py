"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

from models.enums import STAGE_LABELS, Stage
from models.progress import ProgressRecord

EDU_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.num": "blue",
})

_STATUS_STYLES = {
    "in_progress": "info",
    "completed": "success",
    "failed": "error",
    "pending": "muted",
}


def get_console() -> Console:
    """Return a Console instance with the app theme applied."""
    return Console(theme=EDU_THEME)


def app_header(title: str = "eduforge") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def status_text(status: str) -> str:
    style = _STATUS_STYLES.get(status, "muted")
    return f"[{style}]{status}[/]"


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "Start run").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def failure_panel(title: str, body: str) -> Panel:
    return Panel(body, title=f"[error]{title}[/]", box=box.ROUNDED, border_style="red", padding=(0, 2))


def run_summary_panel(record: ProgressRecord) -> Panel:
    """Return a Panel with the headline numbers of a run."""
    outcome = f" [muted]({record.outcome.value})[/]" if record.outcome else ""
    body = (
        f"  [stat.label]Status:[/] {status_text(record.status.value)}{outcome}  "
        f"[muted]|[/]  [stat.label]Progress:[/] [stat.value]{record.progress_percentage}%[/]  "
        f"[muted]|[/]  [stat.label]ETA:[/] [stat.value]{record.estimated_time_remaining()}[/]\n"
        f"  [stat.label]Chapters:[/] [stat.value]{record.completed_chapters}/{record.total_chapters}[/]  "
        f"[muted]|[/]  [stat.label]Sections:[/] [stat.value]{record.completed_sections}/{record.total_sections}[/]  "
        f"[muted]|[/]  [stat.label]Words:[/] [stat.value]{record.total_words_generated:,}"
        f"/{record.target_word_count:,}[/]\n"
        f"  [stat.label]Step:[/] {record.current_step}"
    )
    return Panel(
        body,
        title=f"[bold]{record.topic}[/] [muted]({record.workflow_id})[/]",
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2),
    )


def stage_table(record: ProgressRecord) -> Table:
    """Build a table of the four pipeline stages of a run."""
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("Stage")
    table.add_column("Status")
    table.add_column("Started", style="muted")
    table.add_column("Ended", style="muted")
    table.add_column("Error", style="error")

    for stage in Stage:
        stage_record = record.stage(stage)
        table.add_row(
            STAGE_LABELS[stage],
            status_text(stage_record.status.value),
            stage_record.start_time or "",
            stage_record.end_time or "",
            stage_record.error or "",
        )
    return table


def chapter_table(record: ProgressRecord, limit: int = 15) -> Table:
    """Build a table of the chapters completed so far."""
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("#", style="chapter.num", justify="right")
    table.add_column("Title")
    table.add_column("Words", justify="right")
    table.add_column("Completed", style="muted")

    details = record.completed_chapter_details
    for c in details[:limit]:
        table.add_row(str(c.chapter_number), c.title, f"{c.word_count:,}", c.completed_at)
    if len(details) > limit:
        table.add_row("", f"[muted]+{len(details) - limit} more[/]", "", "")
    return table
