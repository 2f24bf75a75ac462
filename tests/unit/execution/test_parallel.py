"""Test bounded parallel execution."""

import asyncio

import pytest

from pyparcel.execution.parallel import BoundedExecutor, map_bounded


@pytest.mark.asyncio
async def test_results_keep_input_order():
    async def slow_double(n: int) -> int:
        await asyncio.sleep(0.01 * (5 - n))
        return n * 2

    results = await map_bounded([1, 2, 3, 4], slow_double, concurrency=4)

    assert results == [2, 4, 6, 8]


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    running = 0
    peak = 0

    async def work(_: int) -> None:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    await BoundedExecutor(concurrency=2).map(list(range(6)), work)

    assert peak == 2


@pytest.mark.asyncio
async def test_exceptions_returned_in_place():
    async def maybe_fail(n: int) -> int:
        if n == 2:
            raise ValueError("two")
        return n

    results = await map_bounded([1, 2, 3], maybe_fail)

    assert results[0] == 1
    assert isinstance(results[1], ValueError)
    assert results[2] == 3


def test_concurrency_at_least_one():
    assert BoundedExecutor(concurrency=0).concurrency == 1


@pytest.mark.asyncio
async def test_empty_input():
    async def never(_: int) -> int:
        raise AssertionError

    assert await map_bounded([], never) == []
