"""
Single-flight loader for process-lifetime values.

Concurrent callers that arrive before the first successful load share one
in-flight future and observe the same result or exception. A failed load is
not remembered: the next call starts a new episode.
"""

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class OnceGuard(Generic[T]):
    """Runs an async loader exactly once per loading episode and caches success."""

    def __init__(self, loader: Callable[[], Awaitable[T]], name: str = "value"):
        self._loader = loader
        self._name = name
        self._value: Optional[T] = None
        self._loaded = False
        self._inflight: Optional[asyncio.Future] = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def get(self) -> T:
        """Return the cached value, joining or starting a load when needed."""
        if self._loaded:
            return self._value

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._run())
            self._inflight.add_done_callback(_retrieve_exception)

        # Shielded so one caller's cancellation does not abort the shared load
        return await asyncio.shield(self._inflight)

    async def _run(self) -> T:
        try:
            value = await self._loader()
        except BaseException:
            self._inflight = None
            raise
        self._value = value
        self._loaded = True
        self._inflight = None
        logger.debug(f"Loaded {self._name}")
        return value


def _retrieve_exception(future: asyncio.Future) -> None:
    # Avoids "exception was never retrieved" when every waiter went away
    if not future.cancelled():
        future.exception()
