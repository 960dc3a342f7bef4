"""Pure parser turning a free-text outline into chapter plans."""

import logging
import re

from models.book import ChapterPlan

logger = logging.getLogger(__name__)

# Chapter budgets always divide by this estimate, whatever the parsed count
ESTIMATED_CHAPTER_COUNT = 10

FALLBACK_CHAPTER_COUNT = 8
FALLBACK_SECTIONS = (
    "Introduction",
    "Core Concepts",
    "Practical Examples",
    "Advanced Topics",
    "Summary",
)

# "Chapter 1: Title", "1. Title", "3 Title"
_CHAPTER_RE = re.compile(r"^(?:Chapter\s+)?(\d+)[:.\s]+(.+)$", re.IGNORECASE)
# "- Section 1.1: Title", "• Title"
_SECTION_RE = re.compile(r"^[-•]\s*(?:Section\s+\d+\.\d+:\s*)?(.+)$")
_BULLETS = ("-", "•")


def chapter_word_budget(requested_total_word_count: int) -> int:
    return requested_total_word_count // ESTIMATED_CHAPTER_COUNT


def fallback_chapters(requested_total_word_count: int) -> list[ChapterPlan]:
    """Default skeleton used when the outline yields no chapters."""
    budget = chapter_word_budget(requested_total_word_count)
    return [
        ChapterPlan(
            number=i,
            title=f"Chapter {i}",
            sections=FALLBACK_SECTIONS,
            target_word_count=budget,
        )
        for i in range(1, FALLBACK_CHAPTER_COUNT + 1)
    ]


def parse_outline(text: str, requested_total_word_count: int) -> list[ChapterPlan]:
    """Parse outline text into chapters.

    Chapters are numbered by parse order, not by the number in the text,
    so skipped or repeated numbers from the model are tolerated. Section
    lines before the first chapter header are ignored. A chapter header
    with no section lines gets the fallback section list.

    Args:
        text: Outline text as returned by the outline agent.
        requested_total_word_count: Total words requested for the book.

    Returns:
        Chapter plans in outline order; the 8-chapter fallback skeleton
        when no chapter header is recognized.
    """
    budget = chapter_word_budget(requested_total_word_count)
    parsed: list[tuple[str, list[str]]] = []

    for line in (text or "").split("\n"):
        stripped = line.strip()
        if not stripped:
            continue

        if not stripped.startswith(_BULLETS):
            chapter_match = _CHAPTER_RE.match(stripped)
            if chapter_match:
                parsed.append((chapter_match.group(2).strip(), []))
                continue

        section_match = _SECTION_RE.match(stripped)
        if section_match and parsed:
            title = section_match.group(1).strip()
            if title:
                parsed[-1][1].append(title)

    if not parsed:
        logger.warning("Outline contained no chapter headers; using %d-chapter fallback",
                       FALLBACK_CHAPTER_COUNT)
        return fallback_chapters(requested_total_word_count)

    chapters = []
    for number, (title, sections) in enumerate(parsed, start=1):
        if not sections:
            logger.warning("Chapter %d (%s) has no sections; using default sections", number, title)
        chapters.append(ChapterPlan(
            number=number,
            title=title,
            sections=tuple(sections) if sections else FALLBACK_SECTIONS,
            target_word_count=budget,
        ))
    return chapters


def format_outline(chapters: list[ChapterPlan]) -> str:
    """Render chapter plans back into the outline text format."""
    blocks = []
    for chapter in chapters:
        lines = [f"Chapter {chapter.number}: {chapter.title}"]
        lines.extend(
            f"- Section {chapter.number}.{i}: {section}"
            for i, section in enumerate(chapter.sections, start=1)
        )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
