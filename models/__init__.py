"""Models package: progress store, book and progress models, and enums."""

from models.progress_store import ProgressStore
from models.progress import ChapterCompletion, ProgressRecord, StageRecord
from models.book import (
    BookContent,
    ChapterPlan,
    GeneratedChapter,
    GeneratedSection,
    PublishResult,
    RenderedBook,
    ReviewOutcome,
    RunRequest,
)
from models.enums import (
    RunStatus,
    StepStatus,
    Stage,
    STAGE_LABELS,
    RunOutcome,
)

__all__ = [
    "ProgressStore",
    "ChapterCompletion",
    "ProgressRecord",
    "StageRecord",
    "BookContent",
    "ChapterPlan",
    "GeneratedChapter",
    "GeneratedSection",
    "PublishResult",
    "RenderedBook",
    "ReviewOutcome",
    "RunRequest",
    "RunStatus",
    "StepStatus",
    "Stage",
    "STAGE_LABELS",
    "RunOutcome",
]
