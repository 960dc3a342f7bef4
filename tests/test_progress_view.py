"""Tests for the polling view built from a progress record."""

from models.enums import RunOutcome, Stage
from workflow.progress_view import book_url, build_progress_view


class TestBookUrl:
    def test_default_format(self):
        assert book_url("edu-1") == "/api/workflows/edu-1/book"

    def test_explicit_format(self):
        assert book_url("edu-1", "pdf") == "/api/workflows/edu-1/book?format=pdf"


class TestProgressView:
    def test_fresh_run(self, initialized_store):
        view = build_progress_view(initialized_store.get("run-1"))

        assert view["workflowId"] == "run-1"
        assert view["status"] == "in_progress"
        assert view["outcome"] is None
        assert view["progress"] == 0
        assert view["estimatedTimeRemaining"] == "Calculating..."
        assert [s["id"] for s in view["steps"]] == ["plan", "generate", "review", "publish"]
        assert all(s["status"] == "pending" for s in view["steps"])
        assert "result" not in view

    def test_generation_in_progress(self, initialized_store):
        initialized_store.update("run-1", stage=Stage.PLAN)
        initialized_store.update(
            "run-1", stage=Stage.GENERATE, completed_sections=1, total_words_generated=250,
        )
        view = build_progress_view(initialized_store.get("run-1"))

        plan, generate = view["steps"][0], view["steps"][1]
        assert plan["status"] == "completed"
        assert plan["progress"] == 100
        assert plan["details"] == "2 chapters, 4 sections"
        assert generate["status"] == "in_progress"
        assert generate["progress"] == 25
        assert generate["details"] == "1/4 sections, 250 words"
        assert view["progress"] == 25
        assert view["totalWordsGenerated"] == 250
        assert view["estimatedTimeRemaining"].endswith("m")

    def test_completed_run_has_result(self, initialized_store):
        initialized_store.update("run-1", stage=Stage.PUBLISH, completed_sections=4,
                                 total_words_generated=1000)
        initialized_store.complete("run-1", result={
            "finalWordCount": 1000,
            "qualityScore": 8.5,
            "fileSize": 2048,
            "completedAt": "2026-01-01T00:00:00+00:00",
            "formats": {"html": "/tmp/a.html", "pdf": "/tmp/a.pdf"},
        })
        view = build_progress_view(initialized_store.get("run-1"))

        assert view["status"] == "completed"
        assert view["outcome"] == "completed"
        assert view["progress"] == 100
        assert view["result"] == {
            "contentUrl": "/api/workflows/run-1/book",
            "pdfUrl": "/api/workflows/run-1/book?format=pdf",
            "wordCount": 1000,
            "completedAt": "2026-01-01T00:00:00+00:00",
        }
        publish = view["steps"][3]
        assert publish["status"] == "completed"
        assert publish["details"] == "2,048 bytes"
        assert view["steps"][2]["details"] == "Quality score: 8.5"

    def test_completed_without_pdf(self, initialized_store):
        initialized_store.complete("run-1", result={"formats": {"html": "/tmp/a.html"}})
        view = build_progress_view(initialized_store.get("run-1"))
        assert view["result"]["pdfUrl"] is None
        assert view["result"]["wordCount"] == 0

    def test_rejected_run_has_no_result(self, initialized_store):
        initialized_store.update("run-1", stage=Stage.PUBLISH)
        initialized_store.fail(
            "run-1", "Content not approved for publication (quality score: 5)",
            outcome=RunOutcome.REJECTED,
        )
        view = build_progress_view(initialized_store.get("run-1"))

        assert view["status"] == "failed"
        assert view["outcome"] == "rejected"
        assert "result" not in view
        assert view["steps"][3]["status"] == "failed"
        assert "quality score: 5" in view["steps"][3]["error"]
        assert len(view["errors"]) == 1

    def test_generate_step_rounds_halves_up(self, store):
        store.initialize("r8", topic="Python", total_chapters=2, total_sections=8, target_word_count=100000)
        store.update("r8", stage=Stage.GENERATE, completed_sections=1)
        view = build_progress_view(store.get("r8"))

        assert view["steps"][1]["progress"] == 13
        assert view["progress"] == 13
