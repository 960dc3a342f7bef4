"""
Workflow start, progress polling, listing and book download endpoints.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from api.deps import get_registry, get_settings_dep, get_store
from api.registry import RunRegistry
from api.schemas import RunSummary, WorkflowCreate, WorkflowStarted
from config.settings import Settings
from models.enums import RunStatus
from models.progress_store import ProgressStore
from workflow.graph import make_request
from workflow.progress_view import build_progress_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workflows", tags=["Workflows"])

_MEDIA_TYPES = {"html": "text/html", "pdf": "application/pdf"}


@router.post("", response_model=WorkflowStarted, status_code=202, response_model_by_alias=True)
async def create_workflow(
    body: WorkflowCreate,
    settings: Settings = Depends(get_settings_dep),
    registry: RunRegistry = Depends(get_registry),
):
    """
    Start a new run in the background

    - **topic**: Book topic (default from settings)
    - **targetAudience**: Intended readers (default from settings)
    - **targetWordCount**: Requested total words, clamped to 1000-100000
    """
    request = make_request(body.topic, body.target_audience, body.target_word_count, settings)
    run_id = registry.start(request)
    logger.info("Run %s started via API: topic=%s", run_id, request.topic)
    return WorkflowStarted(workflow_id=run_id, progress_url=f"/api/workflows/{run_id}/progress")


@router.get("", response_model=list[RunSummary], response_model_by_alias=True)
async def list_workflows(
    status: Optional[RunStatus] = None,
    limit: int = 50,
    store: ProgressStore = Depends(get_store),
):
    """List runs, newest first, optionally filtered by status."""
    return [
        RunSummary(
            workflow_id=r.workflow_id,
            topic=r.topic,
            status=r.status.value,
            outcome=r.outcome.value if r.outcome else None,
            progress=r.progress_percentage,
            current_step=r.current_step,
            start_time=r.start_time,
            end_time=r.end_time,
        )
        for r in store.list_runs(status=status, limit=limit)
    ]


@router.get("/{run_id}/progress")
async def get_progress(
    run_id: str,
    store: ProgressStore = Depends(get_store),
    registry: RunRegistry = Depends(get_registry),
):
    """
    Poll the progress of a run

    Returns 404 until the run has finished planning and created its
    record; pollers treat that as "not started yet". A run that died
    before that answers 503 when its error is transient, else 500.
    """
    record = store.find(run_id)
    if record is None:
        error = registry.failure(run_id)
        if error is not None:
            status_code = 503 if getattr(error, "transient", False) else 500
            raise HTTPException(
                status_code=status_code,
                detail=f"Workflow {run_id} failed before planning completed: {error}",
            )
        raise HTTPException(status_code=404, detail=f"No progress found for workflow {run_id}")
    return build_progress_view(record)


@router.post("/{run_id}/cancel", status_code=202)
async def cancel_workflow(run_id: str, registry: RunRegistry = Depends(get_registry)):
    """Ask a running workflow to stop before its next section."""
    if not registry.cancel(run_id):
        raise HTTPException(status_code=404, detail=f"No running workflow {run_id}")
    return {"workflowId": run_id, "status": "cancelling"}


@router.get("/{run_id}/book")
async def get_book(
    run_id: str,
    format: Literal["html", "pdf"] = "html",
    store: ProgressStore = Depends(get_store),
):
    """Download the rendered book of a completed run."""
    record = store.find(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No progress found for workflow {run_id}")
    if record.status != RunStatus.COMPLETED or not record.result:
        raise HTTPException(status_code=404, detail=f"Workflow {run_id} has no book")

    path = record.result.get("formats", {}).get(format)
    if not path or not Path(path).exists():
        raise HTTPException(status_code=404, detail=f"No {format} file for workflow {run_id}")
    return FileResponse(path, media_type=_MEDIA_TYPES[format], filename=Path(path).name)
