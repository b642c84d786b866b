"""Parallel upload utilities."""
import asyncio
from typing import Any, Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")


def get_max_concurrent(options: Any, default: int) -> int:
    """
    Read the concurrency limit from caller options.

    Uses ``options.get_max_concurrent()`` when the method exists,
    otherwise ``default``. Never returns less than 1.
    """
    getter = getattr(options, "get_max_concurrent", None)
    value = getter() if callable(getter) else default
    try:
        value = int(value)
    except (TypeError, ValueError):
        value = default
    return max(value, 1)


async def gather_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int,
) -> List[T]:
    """
    Run coroutine factories with at most ``limit`` in flight.

    The pool is work-conserving: as soon as one finishes the next starts.
    Results keep input order. The first exception propagates after the
    remaining tasks are cancelled.
    """
    semaphore = asyncio.Semaphore(max(limit, 1))

    async def run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    tasks = [asyncio.create_task(run(factory)) for factory in factories]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
