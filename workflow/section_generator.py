"""Section generation with retry and exponential backoff."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from config.exceptions import GenerationExhaustedError
from models.book import GeneratedSection
from models.progress import utc_now
from tools.text_utils import count_words

logger = logging.getLogger(__name__)

# Acceptable deviation around the per-section word target
WORD_TOLERANCE = 50

GenerateFn = Callable[[str, str], Awaitable[str]]
SleepFn = Callable[[float], Awaitable[None]]


def backoff_delay_ms(attempt: int, base_ms: int = 1000, max_ms: int = 30000) -> int:
    """Delay before ``attempt`` (1-based): 0, then base, 2*base, ... capped."""
    if attempt <= 1:
        return 0
    return min(base_ms * 2 ** (attempt - 2), max_ms)


def section_thread_id(run_id: str, chapter_number: int, section_index: int) -> str:
    return f"writing-{run_id}-{chapter_number}-{section_index}"


@dataclass(frozen=True)
class SectionPromptContext:
    """Everything the writer needs to produce one section."""
    run_id: str
    topic: str
    chapter_number: int
    chapter_title: str
    section_title: str
    section_index: int
    section_titles: tuple[str, ...]
    outline_text: str
    target_words: int

    @property
    def thread_id(self) -> str:
        return section_thread_id(self.run_id, self.chapter_number, self.section_index)


def build_section_prompt(context: SectionPromptContext, template: Optional[str] = None) -> str:
    """Render the writer's section template for ``context``."""
    if template is None:
        from agents.writer_agent import load_section_template
        template = load_section_template()

    section_outline = "\n".join(
        f"{i}. {title}" for i, title in enumerate(context.section_titles, start=1)
    )
    return template.format(
        topic=context.topic,
        chapter_number=context.chapter_number,
        chapter_title=context.chapter_title,
        section_title=context.section_title,
        outline_text=context.outline_text,
        section_outline=section_outline,
        section_position=context.section_index + 1,
        target_words=context.target_words,
        min_words=max(0, context.target_words - WORD_TOLERANCE),
        max_words=context.target_words + WORD_TOLERANCE,
    )


class SectionGenerator:
    """Calls the writer capability for one section, retrying on failure.

    Any exception from the capability counts as a failed attempt,
    including the ``LLMTimeoutError`` raised by the SDK client. The delay
    before attempt k (k >= 2) is ``backoff_delay_ms(k)``.
    """

    def __init__(
        self,
        generate: GenerateFn,
        retry_attempts: int = 3,
        sleep: SleepFn = asyncio.sleep,
        backoff_base_ms: int = 1000,
        backoff_max_ms: int = 30000,
        template: Optional[str] = None,
    ):
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        self._generate = generate
        self.retry_attempts = retry_attempts
        self._sleep = sleep
        self.backoff_base_ms = backoff_base_ms
        self.backoff_max_ms = backoff_max_ms
        self._template = template

    async def generate_section(self, context: SectionPromptContext) -> GeneratedSection:
        """Generate one section.

        Raises:
            GenerationExhaustedError: Every attempt failed.
        """
        prompt = build_section_prompt(context, self._template)
        last_error = ""

        for attempt in range(1, self.retry_attempts + 1):
            delay = backoff_delay_ms(attempt, self.backoff_base_ms, self.backoff_max_ms)
            if delay:
                logger.info(
                    "Retrying section '%s' in %dms (attempt %d/%d)",
                    context.section_title, delay, attempt, self.retry_attempts,
                )
                await self._sleep(delay / 1000)

            try:
                text = await self._generate(prompt, context.thread_id)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = str(e) or type(e).__name__
                logger.warning(
                    "Section '%s' attempt %d/%d failed: %s",
                    context.section_title, attempt, self.retry_attempts, last_error,
                )
                continue

            words = count_words(text)
            logger.info(
                "Section generated: chapter=%d, section=%d '%s', words=%d (target %d)",
                context.chapter_number, context.section_index + 1,
                context.section_title, words, context.target_words,
            )
            return GeneratedSection(
                title=context.section_title,
                content=text,
                word_count=words,
                chunk_index=context.section_index,
                generated_at=utc_now().isoformat(),
            )

        raise GenerationExhaustedError(context.section_title, last_error, self.retry_attempts)
