"""
Cancellable task handles

One handle is kept per concern (pricing fetch, success redirect). Starting a
new task on a handle cancels whatever the handle was running before, so a
handle never owns more than one live task.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)


class TaskHandle:
    """Owns at most one running asyncio task for a named concern"""

    def __init__(self, name: str):
        self.name = name
        self.key: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def start(self, coro: Awaitable[Any], key: Optional[str] = None) -> asyncio.Task:
        """Cancel the current task (if any) and schedule `coro` in its place"""
        self.cancel()
        self.key = key
        self._task = asyncio.ensure_future(coro)
        self._task.set_name(f"{self.name}:{key}" if key else self.name)
        return self._task

    def cancel(self) -> bool:
        """Cancel the running task. Returns True if something was cancelled."""
        if self._task is None or self._task.done():
            return False
        logger.debug(f"Cancelling task {self._task.get_name()}")
        self._task.cancel()
        return True

    async def wait(self) -> Any:
        """Wait for the current task; a cancelled task yields None"""
        if self._task is None:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None
