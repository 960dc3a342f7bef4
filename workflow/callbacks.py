"""Workflow progress callbacks for monitoring and real-time reporting."""

import logging
from typing import Protocol, runtime_checkable

from models.enums import STAGE_LABELS, Stage

logger = logging.getLogger(__name__)


@runtime_checkable
class WorkflowCallback(Protocol):
    """Protocol for workflow progress callbacks.

    Implement this protocol to hook into the workflow execution lifecycle.
    """

    def on_node_exit(self, node: str, state: dict) -> None:
        """Called after a node finishes executing with the current accumulated state."""
        ...

    def on_section_complete(
        self, chapter_num: int, section_title: str, completed: int, total: int, word_count: int,
    ) -> None:
        """Called after each section is generated."""
        ...

    def on_chapter_complete(self, chapter_num: int, total: int, word_count: int) -> None:
        """Called when every section of a chapter has been generated."""
        ...

    def on_error(self, node: str, error: str) -> None:
        """Called when a node raises."""
        ...

    def on_workflow_complete(self, final_state: dict) -> None:
        """Called when the entire workflow finishes."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_node_exit(self, node: str, state: dict) -> None:
        logger.debug("← node: %s", node)

    def on_section_complete(
        self, chapter_num: int, section_title: str, completed: int, total: int, word_count: int,
    ) -> None:
        logger.info(
            "Section %d/%d done: chapter %d '%s' (%d words)",
            completed, total, chapter_num, section_title, word_count,
        )

    def on_chapter_complete(self, chapter_num: int, total: int, word_count: int) -> None:
        logger.info("Chapter %d/%d complete (%d words)", chapter_num, total or "?", word_count)

    def on_error(self, node: str, error: str) -> None:
        logger.error("Workflow error in '%s': %s", node, error)

    def on_workflow_complete(self, final_state: dict) -> None:
        result = final_state.get("publish_result")
        logger.info(
            "Workflow complete: book_generated=%s, words=%d",
            getattr(result, "book_generated", False),
            final_state.get("total_words", 0),
        )


class RichProgressCallback:
    """Progress callback that renders a Rich live progress display in the terminal."""

    # astream fires after a node completes, so show the stage that is entering next
    _ENTERING_STAGE: dict[str, Stage] = {
        "plan": Stage.GENERATE,
        "generate": Stage.REVIEW,
        "review": Stage.PUBLISH,
    }

    def __init__(self, console=None):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
        """
        self._console = console
        self._progress = None
        self._section_task_id = None
        self._stage_task_id = None

    def start(self):
        """Start the progress display. Call before running the workflow."""
        from rich.console import Console
        from rich.progress import (
            Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn,
        )

        console = self._console or Console()

        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()

        self._section_task_id = self._progress.add_task("Waiting for outline...", total=None)
        self._stage_task_id = self._progress.add_task(
            f"[dim]{STAGE_LABELS[Stage.PLAN]}...[/]", total=None,
        )

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_node_exit(self, node: str, state: dict) -> None:
        if not self._progress:
            return

        if node == "plan":
            total = state.get("total_sections", 0)
            self._progress.update(
                self._section_task_id,
                total=total or None,
                description=f"0/{total} sections",
            )

        stage = self._ENTERING_STAGE.get(node)
        label = STAGE_LABELS[stage] if stage else node
        self._progress.update(self._stage_task_id, description=f"[dim]{label}...[/]")

    def on_section_complete(
        self, chapter_num: int, section_title: str, completed: int, total: int, word_count: int,
    ) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._section_task_id,
            completed=completed,
            description=f"{completed}/{total} sections",
        )
        self._progress.update(
            self._stage_task_id,
            description=f"[dim]Chapter {chapter_num}: {section_title}[/]",
        )

    def on_chapter_complete(self, chapter_num: int, total: int, word_count: int) -> None:
        if not self._progress:
            return
        self._progress.console.print(
            f"  [green]Chapter {chapter_num}/{total}[/] [dim]({word_count:,} words)[/]"
        )

    def on_error(self, node: str, error: str) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._stage_task_id,
            description=f"[red]Error ({node}): {error[:80]}[/]",
        )

    def on_workflow_complete(self, final_state: dict) -> None:
        if not self._progress:
            return
        result = final_state.get("publish_result")
        if result is not None and result.book_generated:
            description = f"[bold green]Done! {result.final_word_count:,} words[/]"
        else:
            description = "[bold yellow]Finished without a book[/]"
        self._progress.update(self._section_task_id, description=description)
        self._progress.update(self._stage_task_id, description="")
