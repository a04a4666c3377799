"""
Per-key claims on operations that are awaiting an external tool.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any


class InFlight:
    """
    Track one running task per key.

    The task is registered synchronously, before the caller first yields to
    the event loop, so a concurrent caller for the same key always finds it
    and can await the same outcome instead of starting a second one. The
    claim is released when the task finishes, whatever its result.
    """

    def __init__(self):
        self._tasks: dict[str, asyncio.Task] = {}

    def get(self, key: str) -> asyncio.Task | None:
        """Return the running task for key, if any."""
        return self._tasks.get(key)

    def start(self, key: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """
        Schedule coro as the claim for key.

        Raises:
            RuntimeError: If key is already claimed
        """
        if key in self._tasks:
            coro.close()
            raise RuntimeError(f"{key} is already in flight")

        task = asyncio.create_task(coro)
        self._tasks[key] = task
        task.add_done_callback(lambda _: self._release(key, task))
        return task

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)
