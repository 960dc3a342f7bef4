"""Tests for section generation with retry and backoff."""

import pytest
from unittest.mock import AsyncMock

from config.exceptions import GenerationExhaustedError
from workflow.section_generator import (
    SectionGenerator,
    SectionPromptContext,
    backoff_delay_ms,
    build_section_prompt,
    section_thread_id,
)


def _context(**overrides) -> SectionPromptContext:
    data = dict(
        run_id="edu-1",
        topic="Python",
        chapter_number=2,
        chapter_title="Functions",
        section_title="Defining Functions",
        section_index=1,
        section_titles=("Why Functions", "Defining Functions", "Arguments"),
        outline_text="Chapter 1: Intro\nChapter 2: Functions",
        target_words=400,
    )
    data.update(overrides)
    return SectionPromptContext(**data)


class TestBackoff:
    def test_schedule(self):
        assert [backoff_delay_ms(k) for k in range(1, 6)] == [0, 1000, 2000, 4000, 8000]

    def test_capped(self):
        assert backoff_delay_ms(10) == 30000
        assert backoff_delay_ms(50) == 30000

    def test_custom_base(self):
        assert backoff_delay_ms(3, base_ms=10, max_ms=15) == 15


class TestPrompt:
    def test_thread_id(self):
        assert _context().thread_id == "writing-edu-1-2-1"
        assert section_thread_id("r", 3, 0) == "writing-r-3-0"

    def test_prompt_contains_context(self):
        prompt = build_section_prompt(_context())
        assert '"Python"' in prompt
        assert "Chapter 2: Functions" in prompt
        assert "CURRENT SECTION: 2. Defining Functions" in prompt
        assert "1. Why Functions" in prompt
        assert "400 words (350 to 450 words acceptable)" in prompt

    def test_custom_template(self):
        prompt = build_section_prompt(_context(), template="{section_title}|{min_words}-{max_words}")
        assert prompt == "Defining Functions|350-450"

    def test_min_words_never_negative(self):
        prompt = build_section_prompt(_context(target_words=20), template="{min_words}")
        assert prompt == "0"


class TestSectionGenerator:
    @pytest.mark.asyncio
    async def test_first_attempt_success_does_not_sleep(self, no_sleep):
        generate = AsyncMock(return_value="one two three")
        gen = SectionGenerator(generate, sleep=no_sleep)

        section = await gen.generate_section(_context())

        assert section.title == "Defining Functions"
        assert section.word_count == 3
        assert section.chunk_index == 1
        assert section.generated_at
        generate.assert_awaited_once()
        assert generate.await_args.args[1] == "writing-edu-1-2-1"
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_with_backoff_then_succeeds(self, no_sleep):
        generate = AsyncMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "done"])
        gen = SectionGenerator(generate, retry_attempts=3, sleep=no_sleep)

        section = await gen.generate_section(_context())

        assert section.content == "done"
        assert generate.await_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_raises_with_last_error(self, no_sleep):
        generate = AsyncMock(side_effect=RuntimeError("still down"))
        gen = SectionGenerator(generate, retry_attempts=3, sleep=no_sleep)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            await gen.generate_section(_context())

        err = exc_info.value
        assert err.section_title == "Defining Functions"
        assert err.last_error == "still down"
        assert err.attempts == 3
        assert "after 3 attempts" in str(err)
        assert generate.await_count == 3

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, no_sleep):
        generate = AsyncMock(side_effect=RuntimeError("x"))
        gen = SectionGenerator(generate, retry_attempts=1, sleep=no_sleep)
        with pytest.raises(GenerationExhaustedError):
            await gen.generate_section(_context())
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_client_timeout_counts_as_failed_attempt(self, no_sleep):
        from config.exceptions import LLMTimeoutError

        generate = AsyncMock(side_effect=[LLMTimeoutError("Agent SDK query timed out after 600s"), "fast"])
        gen = SectionGenerator(generate, retry_attempts=2, sleep=no_sleep)

        section = await gen.generate_section(_context())

        assert section.content == "fast"
        assert generate.await_count == 2
        no_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_empty_text_counts_zero_words(self, no_sleep):
        gen = SectionGenerator(AsyncMock(return_value=""), sleep=no_sleep)
        section = await gen.generate_section(_context())
        assert section.word_count == 0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            SectionGenerator(AsyncMock(), retry_attempts=0)
