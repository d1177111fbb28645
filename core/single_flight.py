"""
Single-flight execution

At most one call per key is in progress at a time. Callers that arrive
while a call for the same key is outstanding wait for and share its result
instead of starting a second call.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """Deduplicates concurrent async calls by key"""

    def __init__(self):
        self._inflight: Dict[str, asyncio.Future] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    def _forget(self, key: str, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def run(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``func`` for ``key`` unless a call for that key is outstanding.

        Args:
            key: Identity of the input (e.g. content hash)
            func: Zero-argument coroutine function

        Returns:
            Result of the (possibly shared) call; exceptions are shared too
        """
        existing = self._inflight.get(key)
        if existing is not None:
            logger.debug(f"Joining in-flight call for {key[:12]}")
            return await asyncio.shield(existing)

        task = asyncio.ensure_future(func())
        self._inflight[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))

        # Shield so one caller's cancellation does not cancel the shared call
        return await asyncio.shield(task)
