"""Workflow package: LangGraph graph, state, section generation, and utilities."""

from workflow.graph import (
    PipelineAgents,
    RunContext,
    StartedRun,
    build_graph,
    make_request,
    new_run_id,
    run_workflow,
    start_run,
)
from workflow.state import EduContentState
from workflow.callbacks import WorkflowCallback, LoggingCallback, RichProgressCallback
from workflow.cancellation import CancellationToken
from workflow.outline_parser import parse_outline, format_outline
from workflow.publication_gate import decide, rejection_reason, extract_quality_score
from workflow.section_generator import SectionGenerator, SectionPromptContext, backoff_delay_ms
from workflow.progress_view import build_progress_view

__all__ = [
    "PipelineAgents",
    "RunContext",
    "StartedRun",
    "build_graph",
    "make_request",
    "new_run_id",
    "run_workflow",
    "start_run",
    "EduContentState",
    "WorkflowCallback",
    "LoggingCallback",
    "RichProgressCallback",
    "CancellationToken",
    "parse_outline",
    "format_outline",
    "decide",
    "rejection_reason",
    "extract_quality_score",
    "SectionGenerator",
    "SectionPromptContext",
    "backoff_delay_ms",
    "build_progress_view",
]
