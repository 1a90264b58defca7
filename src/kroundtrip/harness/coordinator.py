"""Single-initialization barrier between the coordinator and its workers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class SetupBarrier(Generic[T]):
    """Runs setup exactly once; every worker awaits the same outcome.

    The first caller of ``run`` performs the setup. Later callers of ``run``
    and all callers of ``wait`` receive its result, or its exception.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] | None = None
        self._claimed = False

    def _get_future(self) -> asyncio.Future[T]:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    async def run(self, setup: Callable[[], Awaitable[T]]) -> T:
        future = self._get_future()
        if self._claimed:
            return await asyncio.shield(future)
        self._claimed = True

        try:
            result = await setup()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved; the caller re-raises it.
            future.exception()
            raise
        future.set_result(result)
        return result

    async def wait(self) -> T:
        return await asyncio.shield(self._get_future())

    @property
    def done(self) -> bool:
        return self._future is not None and self._future.done()
