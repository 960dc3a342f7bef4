"""Tests for text utility functions."""

import pytest


class TestCountWords:
    def test_empty_string(self):
        from tools.text_utils import count_words
        assert count_words("") == 0

    def test_whitespace_only(self):
        from tools.text_utils import count_words
        assert count_words("  \n\t ") == 0

    def test_splits_on_any_whitespace(self):
        from tools.text_utils import count_words
        assert count_words("one two\nthree\t four") == 4

    def test_hyphenated_token_is_one_word(self):
        from tools.text_utils import count_words
        assert count_words("state-of-the-art design") == 2

    def test_markdown_markers_are_counted(self):
        from tools.text_utils import count_words
        assert count_words("## Heading\n- item") == 4


class TestTruncateText:
    def test_short_text_unchanged(self):
        from tools.text_utils import truncate_text
        assert truncate_text("hello", 10) == "hello"

    def test_cuts_at_limit(self):
        from tools.text_utils import truncate_text
        assert truncate_text("abcdefgh", 3) == "abc"

    @pytest.mark.parametrize("text,limit", [("", 5), ("abc", 0), ("abc", -1)])
    def test_empty_result(self, text, limit):
        from tools.text_utils import truncate_text
        assert truncate_text(text, limit) == ""


class TestSanitizeFilename:
    def test_replaces_non_alphanumerics(self):
        from tools.text_utils import sanitize_filename
        assert sanitize_filename("The Complete Guide to C++") == "The_Complete_Guide_to_C__"

    def test_max_length(self):
        from tools.text_utils import sanitize_filename
        assert len(sanitize_filename("a" * 200)) == 80

    def test_empty_title_falls_back(self):
        from tools.text_utils import sanitize_filename
        assert sanitize_filename("") == "book"


class TestCollapseWhitespace:
    def test_collapses_runs(self):
        from tools.text_utils import collapse_whitespace
        assert collapse_whitespace("  a \n\n b\t c ") == "a b c"
