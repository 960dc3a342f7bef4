"""Publication gate: approve or reject a book from its review text.

The decision is plain substring matching on model-written prose, not
sentiment analysis. It is known to be brittle (a review saying "this is
not approved-looking yet" rejects; one saying "would not need major
revisions" passes), which is why it lives here, isolated and unit-tested.
"""

import re
from typing import Optional

APPROVAL_THRESHOLD = 7.0
DEFAULT_QUALITY_SCORE = 7.5

REJECTION_PHRASES = ("not approved", "needs major revision")

_SCORE_RE = re.compile(r"quality score[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE)


def extract_quality_score(review_text: str, default: float = DEFAULT_QUALITY_SCORE) -> float:
    """Find "quality score: N" in the review, else return ``default``."""
    match = _SCORE_RE.search(review_text or "")
    if not match:
        return default
    return float(match.group(1))


def rejection_reason(
    quality_score: float,
    review_text: str,
    threshold: float = APPROVAL_THRESHOLD,
) -> Optional[str]:
    """Explain why the book would be rejected, or None when it passes."""
    lowered = (review_text or "").lower()
    for phrase in REJECTION_PHRASES:
        if phrase in lowered:
            return f'review says "{phrase}"'
    if quality_score < threshold:
        return f"quality score {quality_score:g} below threshold {threshold:g}"
    return None


def decide(
    quality_score: float,
    review_text: str,
    threshold: float = APPROVAL_THRESHOLD,
) -> bool:
    """Approve when score >= threshold and no rejection phrase appears."""
    return rejection_reason(quality_score, review_text, threshold) is None
