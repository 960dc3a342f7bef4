"""Outline Agent: turns a topic into a chapter/section outline."""

import logging

from agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class OutlineAgent(BaseAgent):
    """Generates the free-text book outline consumed by the outline parser."""

    template_name = "outline"

    def build_prompt(
        self,
        topic: str,
        target_audience: str,
        target_word_count: int,
        research_brief: str = "",
    ) -> str:
        brief = ""
        if research_brief:
            brief = f"\nBACKGROUND RESEARCH:\n{research_brief}\n"
        return self._extract_section(self._template, "Outline Instructions").format(
            topic=topic,
            target_audience=target_audience,
            target_word_count=f"{target_word_count:,}",
            research_brief=brief,
        )

    async def generate_outline(
        self,
        topic: str,
        target_audience: str,
        target_word_count: int,
        thread_id: str,
        research_brief: str = "",
    ) -> str:
        """Ask the model for an outline of 8-12 chapters x 4-6 sections.

        Returns:
            The raw outline text.
        """
        logger.info("Generating outline: topic=%s, thread=%s", topic, thread_id)
        text = await self.llm.chat(
            system_prompt=self.system_prompt,
            user_prompt=self.build_prompt(topic, target_audience, target_word_count, research_brief),
            model=self.settings.llm_model_outline,
        )
        logger.info("Outline generated: %d chars", len(text))
        return text
