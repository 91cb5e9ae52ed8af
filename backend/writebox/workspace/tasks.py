"""Background task helpers for workspace components.

Everything runs on one event loop. Components spawn fire-and-forget tasks
for gateway round trips and use a :class:`Generation` counter to detect
completions that belong to state the user has since reset.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Coroutine

from writebox.core.logging import get_logger

logger = get_logger(__name__)


class Generation:
    """Monotonic counter identifying the current component state."""

    def __init__(self) -> None:
        self.value = 0

    def bump(self) -> int:
        self.value += 1
        return self.value

    def token(self) -> int:
        return self.value

    def is_current(self, token: int) -> bool:
        return token == self.value


class TaskTracker:
    """Keep references to spawned tasks and log their failures."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def drain(self) -> None:
        """Wait until every tracked task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed", task.get_name(), exc_info=exc)


class Debouncer:
    """Run ``callback`` once the calls to :meth:`schedule` go quiet for ``delay`` seconds.

    Each call resets the timer, so at most one run is pending at a time.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Awaitable[Any]],
        tracker: TaskTracker,
        name: str = "debounce",
    ) -> None:
        self.delay = delay
        self.callback = callback
        self.tracker = tracker
        self.name = name
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.tracker.spawn(self.callback(), name=self.name)


__all__ = ["Generation", "TaskTracker", "Debouncer"]
