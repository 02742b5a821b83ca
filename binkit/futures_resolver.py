"""Run several lookups concurrently and keep the first one that finds something."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class FuturesResolver(Generic[T]):
    """Resolve to the first pushed awaitable that returns a value other than None.

    Awaitables start running as soon as they are pushed. Ones that raise are
    logged and skipped; once a winner is found the rest are cancelled.
    """

    def __init__(self) -> None:
        self._tasks: dict[asyncio.Future[T | None], int] = {}
        self._resolved = False

    def push(self, coro: Awaitable[T | None]) -> None:
        if self._resolved:
            raise RuntimeError("resolver has already been resolved")
        self._tasks[asyncio.ensure_future(coro)] = len(self._tasks)

    def extend(self, coros: Iterable[Awaitable[T | None]]) -> None:
        for coro in coros:
            self.push(coro)

    async def resolve(self) -> T | None:
        """Return the first non-None result, or None if nothing succeeded."""
        self._resolved = True
        pending = set(self._tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                winner: T | None = None
                for task in sorted(done, key=self._tasks.__getitem__):
                    if task.cancelled():
                        continue
                    exc = task.exception()
                    if exc is not None:
                        logger.warning("Fail to resolve the future: %r", exc)
                        continue
                    result = task.result()
                    if result is not None and winner is None:
                        winner = result
                if winner is not None:
                    return winner
            return None
        finally:
            for task in pending:
                task.cancel()