"""Enumerations for run and stage status tracking."""

from enum import Enum


class RunStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.IN_PROGRESS


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Stage(str, Enum):
    PLAN = "plan"
    GENERATE = "generate"
    REVIEW = "review"
    PUBLISH = "publish"


# Display names used by the polling view and the CLI
STAGE_LABELS: dict[Stage, str] = {
    Stage.PLAN: "Planning outline",
    Stage.GENERATE: "Generating content",
    Stage.REVIEW: "Reviewing content",
    Stage.PUBLISH: "Generating final book",
}


class RunOutcome(str, Enum):
    """Why a run reached its terminal status.

    ``REJECTED`` and ``ERROR`` both persist ``status=failed``; the outcome
    keeps a review rejection distinguishable from a technical failure.
    """

    COMPLETED = "completed"
    REJECTED = "rejected"
    ERROR = "error"
    CANCELLED = "cancelled"
