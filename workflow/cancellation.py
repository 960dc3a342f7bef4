"""Cooperative cancellation for a single run."""

import asyncio

from config.exceptions import WorkflowCancelledError


class CancellationToken:
    """Set once to ask a run to stop before its next section."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason = ""

    def cancel(self, reason: str = "Cancelled by user"):
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()

    def raise_if_cancelled(self, run_id: str):
        if self._event.is_set():
            raise WorkflowCancelledError(run_id)
