"""Bounded concurrent execution of per-parcel work."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


class BoundedExecutor:
    """Run an async function over many items with controlled parallelism.

    Results keep the order of the input items. Exceptions raised by ``fn`` are
    returned in place of the result so one failing item never cancels the others.

    Attributes:
        concurrency: Maximum number of concurrent calls.
    """

    def __init__(self, concurrency: int = 4) -> None:
        """Initialize executor.

        Args:
            concurrency: Maximum parallel calls.
        """
        self.concurrency = max(1, concurrency)

    async def map(
        self,
        items: Sequence[T],
        fn: Callable[[T], Awaitable[R]],
    ) -> list[R | BaseException]:
        """Apply ``fn`` to every item.

        Args:
            items: Items to process.
            fn: Coroutine function called once per item.

        Returns:
            One entry per item, either the result or the raised exception.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_one(item: T) -> R:
            async with semaphore:
                return await fn(item)

        tasks = [asyncio.create_task(run_one(item)) for item in items]
        return list(await asyncio.gather(*tasks, return_exceptions=True))


async def map_bounded(
    items: Sequence[T],
    fn: Callable[[T], Awaitable[R]],
    *,
    concurrency: int = 4,
) -> list[R | BaseException]:
    """Convenience function for bounded parallel mapping.

    Args:
        items: Items to process.
        fn: Coroutine function called once per item.
        concurrency: Maximum parallel calls.

    Returns:
        Results or exceptions in input order.
    """
    executor = BoundedExecutor(concurrency=concurrency)
    return await executor.map(items, fn)
