"""Tests for the publication gate heuristics."""

import pytest

from workflow.publication_gate import decide, extract_quality_score, rejection_reason


class TestExtractQualityScore:
    @pytest.mark.parametrize("text,expected", [
        ("Quality Score: 8.5/10", 8.5),
        ("quality score 6", 6.0),
        ("Overall QUALITY SCORE:   9.25", 9.25),
    ])
    def test_parses_score(self, text, expected):
        assert extract_quality_score(text) == expected

    def test_default_when_missing(self):
        assert extract_quality_score("Looks great overall.") == 7.5

    def test_custom_default(self):
        assert extract_quality_score("", default=5.0) == 5.0


class TestDecide:
    def test_approves_at_threshold(self):
        assert decide(7.0, "Fine work") is True

    def test_rejects_below_threshold(self):
        assert decide(6.9, "Fine work") is False

    def test_rejects_not_approved_phrase(self):
        assert decide(9.0, "Strong, but NOT APPROVED until fixed") is False

    def test_rejects_major_revision_phrase(self):
        assert decide(9.0, "This needs major revision in chapter 3") is False

    def test_custom_threshold(self):
        assert decide(7.5, "ok", threshold=8.0) is False


class TestRejectionReason:
    def test_none_when_approved(self):
        assert rejection_reason(8.0, "good") is None

    def test_mentions_score(self):
        assert "6.5" in rejection_reason(6.5, "good")

    def test_mentions_phrase(self):
        assert "not approved" in rejection_reason(9.0, "Not approved.")
