"""Cancellable scheduled jobs keyed by subject.

Both the notification debouncer and the volume fader are built on JobRegistry:
at most one job runs per key, and starting a job for a busy key cancels the
previous one first. Everything is cancelled together when the connection goes away.
"""

import asyncio
import logging
from asyncio import Task
from typing import Any, Callable, Coroutine, Hashable, Optional


class JobRegistry:
    """Tasks keyed by (subject, destination) style keys."""

    def __init__(self, name: str = "jobs"):
        self._logger = logging.getLogger(__name__)
        self._name = name
        self._jobs: dict[Hashable, Task[Any]] = {}

    def __contains__(self, key) -> bool:
        return self.is_active(key)

    def __len__(self) -> int:
        return len(self._jobs)

    def keys(self) -> list:
        return list(self._jobs.keys())

    def is_active(self, key) -> bool:
        task = self._jobs.get(key)
        return task is not None and not task.done()

    def get(self, key) -> Optional[Task[Any]]:
        return self._jobs.get(key)

    def start(self, key, coro: Coroutine) -> Task[Any]:
        """Schedule ``coro`` for ``key``, cancelling the job it supersedes."""
        if self.cancel(key):
            self._logger.debug(f"[{self._name}] Superseded job for {key}")
        task = asyncio.get_running_loop().create_task(coro)
        self._jobs[key] = task
        task.add_done_callback(lambda t, k=key: self._job_done(k, t))
        return task

    def cancel(self, key) -> bool:
        """Cancel the job for ``key``. Returns True if one was running."""
        task = self._jobs.pop(key, None)
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    def cancel_all(self):
        for key in list(self._jobs.keys()):
            self.cancel(key)

    def release(self, key, task: Task[Any]):
        """Forget ``task`` under ``key`` without cancelling it."""
        if self._jobs.get(key) is task:
            del self._jobs[key]

    def _job_done(self, key, task: Task[Any]):
        # A replacement may already be running under the same key
        self.release(key, task)
        if task.cancelled():
            return
        exception = task.exception()
        if exception is not None:
            self._logger.error(f"[{self._name}] Job for {key} failed: {exception!r}")


class NotificationDebouncer:
    """Leading + trailing debounce of change events, per key.

    The first trigger for an idle key emits immediately and opens a window of
    ``delay`` seconds. Triggers inside the window are absorbed. When the window
    closes, one trailing event is emitted and the key is idle again. This bounds
    the output to two events per window per key, however noisy the input.
    """

    def __init__(self, delay: float, emit: Callable[[Any], None], name: str = "debounce"):
        self._delay = delay
        self._emit = emit
        self._windows = JobRegistry(name)

    def is_armed(self, key) -> bool:
        return self._windows.is_active(key)

    def trigger(self, key=None):
        if self._windows.is_active(key):
            return
        self._emit(key)
        self._windows.start(key, self._window(key))

    async def _window(self, key):
        await asyncio.sleep(self._delay)
        # Disarm before the trailing emit so a trigger from inside it opens a new window
        self._windows.release(key, asyncio.current_task())
        self._emit(key)

    def cancel(self, key=None):
        self._windows.cancel(key)

    def cancel_all(self):
        """Close every window without emitting the trailing event."""
        self._windows.cancel_all()
