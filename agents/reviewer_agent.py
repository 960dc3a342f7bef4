"""Reviewer Agent: whole-book quality assessment."""

import logging

from agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class ReviewerAgent(BaseAgent):
    """Reviews a condensed view of the generated book.

    The review is free text; the pipeline extracts the score and the
    approval decision from it.
    """

    template_name = "reviewer"

    def build_prompt(
        self,
        topic: str,
        target_audience: str,
        content_summary: str,
        total_word_count: int,
        sample_content: str,
    ) -> str:
        return self._extract_section(self._template, "Review Instructions").format(
            topic=topic,
            target_audience=target_audience or "general learners",
            content_summary=content_summary,
            total_word_count=f"{total_word_count:,}",
            sample_content=sample_content,
        )

    async def review(
        self,
        topic: str,
        target_audience: str,
        content_summary: str,
        total_word_count: int,
        sample_content: str,
        thread_id: str,
    ) -> str:
        logger.info("Reviewing book: topic=%s, words=%d, thread=%s", topic, total_word_count, thread_id)
        return await self.llm.chat(
            system_prompt=self.system_prompt,
            user_prompt=self.build_prompt(
                topic, target_audience, content_summary, total_word_count, sample_content,
            ),
            model=self.settings.llm_model_reviewing,
        )
