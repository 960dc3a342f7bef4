"""Book structure models: run request, chapter plans and generated content."""

from dataclasses import dataclass, field
from typing import Optional

from config.settings import MAX_TARGET_WORD_COUNT, MIN_TARGET_WORD_COUNT


def clamp_word_count(value: int) -> int:
    """Clamp a requested total word count to the supported range."""
    return max(MIN_TARGET_WORD_COUNT, min(MAX_TARGET_WORD_COUNT, int(value)))


@dataclass(frozen=True)
class RunRequest:
    """Immutable inputs of one pipeline run."""
    topic: str
    target_audience: str
    target_word_count: int

    @classmethod
    def create(cls, topic: str, target_audience: str, target_word_count: int) -> "RunRequest":
        return cls(
            topic=topic.strip(),
            target_audience=target_audience.strip(),
            target_word_count=clamp_word_count(target_word_count),
        )


@dataclass(frozen=True)
class ChapterPlan:
    """A chapter derived from the outline. Immutable once planned."""
    number: int
    title: str
    sections: tuple[str, ...]
    target_word_count: int

    @property
    def target_words_per_section(self) -> int:
        if not self.sections:
            return 0
        return self.target_word_count // len(self.sections)


@dataclass(frozen=True)
class GeneratedSection:
    """Output of one content-generation call."""
    title: str
    content: str
    word_count: int
    chunk_index: int
    generated_at: str = ""


@dataclass
class GeneratedChapter:
    """A chapter whose sections have all been written."""
    number: int
    title: str
    content: str = ""
    word_count: int = 0
    sections: list[GeneratedSection] = field(default_factory=list)

    @property
    def section_count(self) -> int:
        return len(self.sections)


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of the review stage; lives only in the run's pipeline state."""
    quality_score: float
    approved: bool
    summary: str
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class RenderedBook:
    """Artifact produced by the book renderer."""
    title: str
    path: str
    file_size: int
    chapter_count: int
    generated_at: str
    format: str = "html"
    extra_paths: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PublishResult:
    """Final output of the publish stage."""
    book_generated: bool
    final_word_count: int
    quality_score: float
    completed_at: str
    artifact_path: Optional[str] = None
    file_size: Optional[int] = None
    rejection_reason: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "bookGenerated": self.book_generated,
            "finalWordCount": self.final_word_count,
            "qualityScore": self.quality_score,
            "completedAt": self.completed_at,
        }
        if self.artifact_path is not None:
            data["artifactPath"] = self.artifact_path
            data["fileSize"] = self.file_size
        if self.rejection_reason is not None:
            data["rejectionReason"] = self.rejection_reason
        return data


@dataclass(frozen=True)
class BookContent:
    """Everything the renderer needs to export one book."""
    topic: str
    title: str
    subtitle: str
    author: str
    chapters: tuple[GeneratedChapter, ...]

    @property
    def word_count(self) -> int:
        return sum(c.word_count for c in self.chapters)
