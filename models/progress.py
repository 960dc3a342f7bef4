"""Progress record model persisted by the progress store."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from models.enums import RunOutcome, RunStatus, Stage, StepStatus

CALCULATING = "Calculating..."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp written by the store."""
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_remaining(remaining_ms: float) -> str:
    """Format a duration as ``"{h}h {m}m"`` or ``"{m}m"``."""
    total_minutes = int(max(0.0, remaining_ms) // 60000)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def percent(ratio: float) -> int:
    """Whole percent for a 0..1 ratio, halves rounded up, capped at 100."""
    return min(100, math.floor(ratio * 100 + 0.5))


@dataclass
class ChapterCompletion:
    """Entry appended to the record each time a chapter finishes."""
    chapter_number: int
    title: str
    word_count: int
    completed_at: str = ""

    def to_dict(self) -> dict:
        return {
            "chapterNumber": self.chapter_number,
            "title": self.title,
            "wordCount": self.word_count,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChapterCompletion":
        return cls(
            chapter_number=data.get("chapterNumber", 0),
            title=data.get("title", ""),
            word_count=data.get("wordCount", 0),
            completed_at=data.get("completedAt", ""),
        )


@dataclass
class StageRecord:
    """Lifecycle of one pipeline stage within a run."""
    status: StepStatus = StepStatus.PENDING
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"status": self.status.value}
        if self.start_time:
            data["startTime"] = self.start_time
        if self.end_time:
            data["endTime"] = self.end_time
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StageRecord":
        return cls(
            status=StepStatus(data.get("status", StepStatus.PENDING.value)),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            error=data.get("error"),
        )


@dataclass
class ProgressRecord:
    """Persisted state of one run, keyed by ``workflow_id``."""
    workflow_id: str
    topic: str
    start_time: str
    target_word_count: int
    total_chapters: int = 0
    total_sections: int = 0
    target_audience: str = ""
    current_step: str = "Initializing"
    completed_chapters: int = 0
    completed_sections: int = 0
    total_words_generated: int = 0
    last_update: str = ""
    status: RunStatus = RunStatus.IN_PROGRESS
    errors: list[str] = field(default_factory=list)
    completed_chapter_details: list[ChapterCompletion] = field(default_factory=list)
    stages: dict[Stage, StageRecord] = field(default_factory=dict)
    outcome: Optional[RunOutcome] = None
    end_time: Optional[str] = None
    result: Optional[dict] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def active_stage(self) -> Optional[Stage]:
        for stage in Stage:
            record = self.stages.get(stage)
            if record and record.status == StepStatus.IN_PROGRESS:
                return stage
        return None

    def stage(self, stage: Stage) -> StageRecord:
        return self.stages.get(stage) or StageRecord()

    # ---- Derived fields (never stored) ----

    @property
    def progress_percentage(self) -> int:
        section_ratio = (
            self.completed_sections / self.total_sections if self.total_sections > 0 else 0.0
        )
        word_ratio = (
            self.total_words_generated / self.target_word_count if self.target_word_count > 0 else 0.0
        )
        return percent(max(section_ratio, word_ratio))

    def estimated_time_remaining(self, now: Optional[datetime] = None) -> str:
        if self.completed_sections <= 0:
            return CALCULATING
        now = now or utc_now()
        elapsed_ms = (now - parse_timestamp(self.start_time)).total_seconds() * 1000
        avg_ms = elapsed_ms / self.completed_sections
        remaining_sections = max(0, self.total_sections - self.completed_sections)
        return format_remaining(avg_ms * remaining_sections)

    # ---- Serialization ----

    def to_dict(self, include_derived: bool = False) -> dict:
        data = {
            "workflowId": self.workflow_id,
            "topic": self.topic,
            "targetAudience": self.target_audience,
            "startTime": self.start_time,
            "currentStep": self.current_step,
            "completedChapters": self.completed_chapters,
            "totalChapters": self.total_chapters,
            "completedSections": self.completed_sections,
            "totalSections": self.total_sections,
            "totalWordsGenerated": self.total_words_generated,
            "targetWordCount": self.target_word_count,
            "lastUpdate": self.last_update,
            "status": self.status.value,
            "errors": list(self.errors),
            "completedChapterDetails": [c.to_dict() for c in self.completed_chapter_details],
            "stages": {s.value: r.to_dict() for s, r in self.stages.items()},
            "outcome": self.outcome.value if self.outcome else None,
            "endTime": self.end_time,
            "result": self.result,
        }
        if include_derived:
            data["progressPercentage"] = self.progress_percentage
            data["estimatedTimeRemaining"] = self.estimated_time_remaining()
        return data
