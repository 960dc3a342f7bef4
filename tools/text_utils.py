"""Text utilities: word-count proxy, sampling, filenames."""

import re


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens in text.

    This is the word-count proxy used for every budget and report in the
    pipeline. It is not a linguistic word count: "state-of-the-art" is one
    word and a bare "-" bullet is another.
    """
    return len(text.split())


def truncate_text(text: str, max_chars: int) -> str:
    """Return the first ``max_chars`` characters of text."""
    if not text or max_chars <= 0:
        return ""
    return text[:max_chars]


def sanitize_filename(title: str, max_length: int = 80) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    cleaned = re.sub(r"[^a-zA-Z0-9]", "_", title)
    return cleaned[:max_length] or "book"


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
