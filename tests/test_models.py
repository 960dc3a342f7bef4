"""Tests for book and progress data models."""

from datetime import datetime, timedelta, timezone

import pytest

from models.book import (
    BookContent,
    ChapterPlan,
    GeneratedChapter,
    GeneratedSection,
    PublishResult,
    RunRequest,
    clamp_word_count,
)
from models.enums import RunOutcome, RunStatus, Stage, StepStatus
from models.progress import (
    ChapterCompletion,
    ProgressRecord,
    StageRecord,
    format_remaining,
    percent,
)


class TestRunRequest:
    @pytest.mark.parametrize("value,expected", [
        (0, 1000), (999, 1000), (1000, 1000), (60000, 60000), (100000, 100000), (250000, 100000),
    ])
    def test_clamp(self, value, expected):
        assert clamp_word_count(value) == expected

    def test_create_strips_and_clamps(self):
        request = RunRequest.create("  Rust  ", " Beginners ", 10)
        assert request == RunRequest("Rust", "Beginners", 1000)

    def test_immutable(self):
        request = RunRequest.create("Rust", "Beginners", 5000)
        with pytest.raises(AttributeError):
            request.topic = "Go"


class TestChapterModels:
    def test_words_per_section(self):
        plan = ChapterPlan(1, "Intro", ("a", "b", "c"), 1000)
        assert plan.target_words_per_section == 333

    def test_words_per_section_without_sections(self):
        assert ChapterPlan(1, "Intro", (), 1000).target_words_per_section == 0

    def test_generated_chapter_section_count(self):
        chapter = GeneratedChapter(1, "Intro", sections=[
            GeneratedSection("a", "x", 1, 0), GeneratedSection("b", "y", 1, 1),
        ])
        assert chapter.section_count == 2

    def test_book_word_count(self):
        book = BookContent(
            topic="Rust", title="T", subtitle="S", author="A",
            chapters=(GeneratedChapter(1, "a", word_count=10), GeneratedChapter(2, "b", word_count=5)),
        )
        assert book.word_count == 15


class TestPublishResult:
    def test_approved_dict(self):
        result = PublishResult(
            book_generated=True, final_word_count=500, quality_score=8.0,
            completed_at="2026-01-01T00:00:00+00:00", artifact_path="/tmp/a.html", file_size=10,
        )
        assert result.to_dict() == {
            "bookGenerated": True,
            "finalWordCount": 500,
            "qualityScore": 8.0,
            "completedAt": "2026-01-01T00:00:00+00:00",
            "artifactPath": "/tmp/a.html",
            "fileSize": 10,
        }

    def test_rejected_dict_has_reason_but_no_artifact(self):
        data = PublishResult(
            book_generated=False, final_word_count=500, quality_score=5.0,
            completed_at="now", rejection_reason="quality score 5 below threshold 7",
        ).to_dict()
        assert "artifactPath" not in data
        assert data["rejectionReason"] == "quality score 5 below threshold 7"


class TestFormatRemaining:
    @pytest.mark.parametrize("ms,expected", [
        (0, "0m"), (59_999, "0m"), (60_000, "1m"), (3_600_000, "1h 0m"),
        (8_100_000, "2h 15m"), (-5, "0m"),
    ])
    def test_format(self, ms, expected):
        assert format_remaining(ms) == expected


class TestProgressRecord:
    def _record(self, **overrides) -> ProgressRecord:
        data = dict(
            workflow_id="run-1", topic="Rust", start_time="2026-01-01T00:00:00+00:00",
            target_word_count=1000, total_chapters=2, total_sections=4,
        )
        data.update(overrides)
        return ProgressRecord(**data)

    def test_percentage_uses_larger_ratio(self):
        assert self._record(completed_sections=1, total_words_generated=600).progress_percentage == 60
        assert self._record(completed_sections=3, total_words_generated=100).progress_percentage == 75

    def test_percentage_capped_at_100(self):
        assert self._record(total_words_generated=5000).progress_percentage == 100

    @pytest.mark.parametrize("ratio,expected", [
        (0.0, 0), (0.125, 13), (0.625, 63), (0.124, 12), (0.999, 100), (1.5, 100),
    ])
    def test_percent_rounds_halves_up(self, ratio, expected):
        assert percent(ratio) == expected

    def test_percentage_zero_totals(self):
        record = self._record(total_sections=0, target_word_count=0)
        assert record.progress_percentage == 0

    def test_eta_calculating_without_sections(self):
        assert self._record().estimated_time_remaining() == "Calculating..."

    def test_eta_from_average_section_time(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        record = self._record(start_time=start.isoformat(), completed_sections=1)
        assert record.estimated_time_remaining(now=start + timedelta(minutes=10)) == "30m"

    def test_active_stage(self):
        record = self._record(stages={
            Stage.PLAN: StageRecord(status=StepStatus.COMPLETED),
            Stage.GENERATE: StageRecord(status=StepStatus.IN_PROGRESS),
        })
        assert record.active_stage == Stage.GENERATE
        assert record.stage(Stage.REVIEW).status == StepStatus.PENDING

    def test_terminal(self):
        assert not self._record().is_terminal
        assert self._record(status=RunStatus.FAILED).is_terminal

    def test_to_dict_with_derived(self):
        record = self._record(
            status=RunStatus.FAILED, outcome=RunOutcome.REJECTED,
            completed_chapter_details=[ChapterCompletion(1, "Intro", 300, "t")],
        )
        data = record.to_dict(include_derived=True)
        assert data["workflowId"] == "run-1"
        assert data["status"] == "failed"
        assert data["outcome"] == "rejected"
        assert data["completedChapterDetails"] == [
            {"chapterNumber": 1, "title": "Intro", "wordCount": 300, "completedAt": "t"},
        ]
        assert data["progressPercentage"] == 0
        assert data["estimatedTimeRemaining"] == "Calculating..."

    def test_stage_record_round_trip(self):
        record = StageRecord(status=StepStatus.FAILED, start_time="a", end_time="b", error="boom")
        assert StageRecord.from_dict(record.to_dict()) == record
