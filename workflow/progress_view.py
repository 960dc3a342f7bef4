"""Builds the polling view of a run from its progress record."""

from typing import Optional

from models.enums import STAGE_LABELS, RunStatus, Stage, StepStatus
from models.progress import ProgressRecord, percent


def book_url(run_id: str, fmt: Optional[str] = None) -> str:
    url = f"/api/workflows/{run_id}/book"
    if fmt:
        url += f"?format={fmt}"
    return url


def _step_details(record: ProgressRecord, stage: Stage) -> str:
    if stage == Stage.PLAN:
        if record.total_chapters:
            return f"{record.total_chapters} chapters, {record.total_sections} sections"
        return ""
    if stage == Stage.GENERATE:
        return (
            f"{record.completed_sections}/{record.total_sections} sections, "
            f"{record.total_words_generated:,} words"
        )
    if stage == Stage.REVIEW and record.result:
        score = record.result.get("qualityScore")
        if score is not None:
            return f"Quality score: {score:g}"
    if stage == Stage.PUBLISH and record.result:
        size = record.result.get("fileSize")
        if size is not None:
            return f"{size:,} bytes"
    return ""


def _step(record: ProgressRecord, stage: Stage) -> dict:
    stage_record = record.stage(stage)
    step = {
        "id": stage.value,
        "name": STAGE_LABELS[stage],
        "status": stage_record.status.value,
        "startTime": stage_record.start_time,
        "endTime": stage_record.end_time,
        "details": _step_details(record, stage),
        "error": stage_record.error,
    }
    if stage == Stage.GENERATE and record.total_sections:
        step["progress"] = percent(record.completed_sections / record.total_sections)
    elif stage_record.status == StepStatus.COMPLETED:
        step["progress"] = 100
    else:
        step["progress"] = 0
    return step


def build_progress_view(record: ProgressRecord) -> dict:
    """Return the view polled by clients.

    ``result`` is present only for a completed run; rejected and failed
    runs report their reason through ``outcome`` and ``errors``.
    """
    view = {
        "workflowId": record.workflow_id,
        "topic": record.topic,
        "status": record.status.value,
        "outcome": record.outcome.value if record.outcome else None,
        "steps": [_step(record, stage) for stage in Stage],
        "progress": record.progress_percentage,
        "currentStep": record.current_step,
        "startTime": record.start_time,
        "endTime": record.end_time,
        "completedChapters": record.completed_chapters,
        "totalChapters": record.total_chapters,
        "completedSections": record.completed_sections,
        "totalSections": record.total_sections,
        "totalWordsGenerated": record.total_words_generated,
        "estimatedTimeRemaining": record.estimated_time_remaining(),
        "errors": list(record.errors),
    }

    if record.status == RunStatus.COMPLETED:
        result = record.result or {}
        formats = result.get("formats", {})
        view["result"] = {
            "contentUrl": book_url(record.workflow_id),
            "pdfUrl": book_url(record.workflow_id, "pdf") if "pdf" in formats else None,
            "wordCount": result.get("finalWordCount", record.total_words_generated),
            "completedAt": result.get("completedAt", record.end_time),
        }
    return view
