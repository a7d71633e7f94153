from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from .logging import StarSortLogger

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """
    Share one in-flight computation among concurrent callers with the same key.

    A successful result stays shared for ``grace_seconds`` after completion so
    near-simultaneous duplicates reuse it. A failed run is forgotten at once,
    so the next caller starts a fresh one.
    """

    def __init__(self, grace_seconds: float = 60.0, logger: Optional[StarSortLogger] = None) -> None:
        self.grace_seconds = grace_seconds
        self.logger = logger
        self._pending: Dict[str, asyncio.Task] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(fn())
            self._pending[key] = task
            task.add_done_callback(lambda done: self._on_done(key, done))
        elif self.logger:
            self.logger.debug("coalesced", key=key, completed=task.done())

        # shield: one waiter being cancelled must not cancel the shared run
        return await asyncio.shield(task)

    def _on_done(self, key: str, task: asyncio.Task) -> None:
        failed = task.cancelled() or task.exception() is not None
        if failed or self.grace_seconds <= 0:
            self._forget(key, task)
            return
        asyncio.get_running_loop().call_later(self.grace_seconds, self._forget, key, task)

    def _forget(self, key: str, task: Any) -> None:
        # A newer run may already own the key.
        if self._pending.get(key) is task:
            del self._pending[key]
