"""Claude Agent SDK wrapper used by every agent."""

import asyncio
import logging
import os
from typing import Callable, Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)

from config.settings import Settings
from config.exceptions import LLMError, LLMTimeoutError

logger = logging.getLogger(__name__)

# Allow launching Agent SDK even when running inside a Claude Code session.
# The SDK checks for this env var and refuses to start if set.
os.environ.pop("CLAUDECODE", None)


class AgentSDKClient:
    """Claude Agent SDK wrapper.

    Uses claude_agent_sdk.query() for all LLM interactions.
    Authentication is handled automatically by Claude Code CLI.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.total_calls = 0

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_turns: int = 1,
        timeout: Optional[float] = None,
        on_event: Optional[Callable[[dict], None]] = None,
    ) -> str:
        """Send a request and return the text result.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            model: Model name override. Defaults to writing model.
            max_turns: Maximum agentic turns.
            timeout: Seconds before the call is abandoned. Defaults to
                     ``settings.llm_call_timeout``; 0 disables it.
            on_event: Optional callback fired with progress events:
                      {"type": "text", "text": str}  first text chunk
                      {"type": "result"}             final result ready

        Returns:
            The model's text response.

        Raises:
            LLMTimeoutError: If the call exceeds the timeout.
            LLMError: If the query fails.
        """
        model = model or self.settings.llm_model_writing
        if timeout is None:
            timeout = self.settings.llm_call_timeout
        self.total_calls += 1

        logger.debug("AgentSDK call: model=%s, max_turns=%d, timeout=%s", model, max_turns, timeout)

        call = self._collect(system_prompt, user_prompt, model, max_turns, on_event)
        try:
            if timeout and timeout > 0:
                result_text = await asyncio.wait_for(call, timeout=timeout)
            else:
                result_text = await call
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(
                f"Agent SDK query timed out after {timeout}s", {"model": model},
            ) from e
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"Agent SDK query failed: {e}") from e

        if not result_text:
            logger.warning("AgentSDK returned no content")

        return result_text

    async def _collect(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_turns: int,
        on_event: Optional[Callable[[dict], None]],
    ) -> str:
        result_text = ""
        text_fired = False
        # Do NOT return/break early from inside the async for loop: query()
        # uses anyio cancel scopes and must be exhausted in the same task.
        async for message in query(
            prompt=user_prompt,
            options=ClaudeAgentOptions(
                system_prompt=system_prompt,
                model=model,
                max_turns=max_turns,
            ),
        ):
            if isinstance(message, ResultMessage):
                result_text = message.result or ""
                logger.debug(
                    "AgentSDK result: %d chars, cost=$%s",
                    len(result_text),
                    message.total_cost_usd,
                )
                if on_event:
                    on_event({"type": "result"})
            elif isinstance(message, AssistantMessage):
                for block in message.content:
                    text = getattr(block, "text", None)
                    if text:
                        if on_event and not text_fired:
                            text_fired = True
                            on_event({"type": "text", "text": text})
                        if not result_text:
                            result_text += text
        return result_text

    def get_usage_summary(self) -> dict:
        """Return call count statistics."""
        return {"total_calls": self.total_calls}
