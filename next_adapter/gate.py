"""Bounded concurrency for per-output file-system work."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")

# Caps open file descriptors while placing/packaging outputs
FS_CONCURRENCY = 16


async def gather_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int = FS_CONCURRENCY,
) -> list[R]:
    """Run *worker* over *items* with at most *limit* running at once.

    Results keep the order of *items*. The first failure cancels every
    sibling (waiting or running) and propagates once they have settled;
    slots are released on both success and failure.
    """
    gate = asyncio.Semaphore(limit)
    failures: list[Exception] = []

    async def run(item: T) -> R:
        async with gate:
            # A slot freed by the failing task must not start new work
            if failures:
                raise asyncio.CancelledError
            try:
                return await worker(item)
            except Exception as err:
                failures.append(err)
                raise

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if failures:
            raise failures[0]
        raise
