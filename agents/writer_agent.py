"""Writer Agent: writes one section of the book per call."""

import logging

from agents.base_agent import BaseAgent, extract_section, load_prompt

logger = logging.getLogger(__name__)


def load_section_template() -> str:
    """Return the user-prompt template for a single section."""
    return extract_section(load_prompt("writer"), "Section Instructions")


class WriterAgent(BaseAgent):
    """Generates section text from a fully rendered section prompt."""

    template_name = "writer"

    async def generate(self, prompt: str, thread_id: str) -> str:
        """Write a section. Errors propagate so the caller can retry."""
        logger.debug("Writing section: thread=%s", thread_id)
        return await self.llm.chat(
            system_prompt=self.system_prompt,
            user_prompt=prompt,
            model=self.settings.llm_model_writing,
        )
