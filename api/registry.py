"""In-process registry of runs started through the API."""

import asyncio
import logging
from collections import OrderedDict
from typing import Optional

from config.exceptions import WorkflowCancelledError
from config.settings import Settings
from models.book import RunRequest
from workflow.graph import StartedRun, start_run

logger = logging.getLogger(__name__)


class RunRegistry:
    """Tracks background run tasks by run id.

    ``run_kwargs`` are passed to every ``run_workflow`` call (store,
    agents, renderer), so all runs of one app share them. A finished run
    leaves the registry at once; only its exception is kept, in a map
    capped at ``max_failures`` entries, so the progress endpoint can
    report runs that died before their record existed.
    """

    def __init__(self, settings: Settings, max_failures: int = 100, **run_kwargs):
        self.settings = settings
        self.max_failures = max_failures
        self.run_kwargs = run_kwargs
        self._runs: dict[str, StartedRun] = {}
        self._failures: OrderedDict[str, BaseException] = OrderedDict()

    def start(self, request: RunRequest) -> str:
        started = start_run(request, settings=self.settings, **self.run_kwargs)
        self._runs[started.run_id] = started
        started.task.add_done_callback(lambda task: self._on_done(started.run_id, task))
        return started.run_id

    def _on_done(self, run_id: str, task: asyncio.Task):
        self._runs.pop(run_id, None)
        if task.cancelled():
            logger.warning("Run %s task cancelled", run_id)
            return
        error = task.exception()
        if isinstance(error, WorkflowCancelledError):
            logger.info("Run %s cancelled", run_id)
        elif error is not None:
            logger.error("Run %s failed: %s", run_id, error)
            self._remember_failure(run_id, error)

    def _remember_failure(self, run_id: str, error: BaseException):
        self._failures[run_id] = error
        while len(self._failures) > self.max_failures:
            dropped, _ = self._failures.popitem(last=False)
            logger.debug("Forgetting failure of run %s", dropped)

    def get(self, run_id: str) -> Optional[StartedRun]:
        """The run while it is still going; None once it has finished."""
        return self._runs.get(run_id)

    def failure(self, run_id: str) -> Optional[BaseException]:
        """The exception a finished run raised, if still remembered."""
        return self._failures.get(run_id)

    def cancel(self, run_id: str, reason: str = "Cancelled via API") -> bool:
        started = self._runs.get(run_id)
        if started is None or started.task.done():
            return False
        started.cancel_token.cancel(reason)
        return True

    @property
    def active_count(self) -> int:
        return sum(1 for s in self._runs.values() if not s.task.done())

    async def shutdown(self):
        """Cancel and await every unfinished run."""
        pending = [s.task for s in self._runs.values() if not s.task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info("Cancelled %d unfinished run(s) on shutdown", len(pending))
