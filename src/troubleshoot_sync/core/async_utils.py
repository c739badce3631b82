"""Async utilities for running blocking store calls off the event loop."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Sequence, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


def make_semaphore(max_parallel: int | None) -> asyncio.Semaphore | None:
    """Create the concurrency semaphore for a run, or ``None`` for unbounded."""
    if max_parallel is None:
        return None
    logger.info("Concurrency limited: max_parallel=%d", max_parallel)
    return asyncio.Semaphore(max_parallel)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    semaphore: asyncio.Semaphore | None,
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run a synchronous function in a thread pool, bounded by *semaphore*.

    Runs unbounded when *semaphore* is ``None``.
    """
    if semaphore is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    async with semaphore:
        return await asyncio.to_thread(func, *args, **kwargs)


async def gather_settled(
    coros: Sequence[Coroutine[Any, Any, T]],
) -> list[T | BaseException]:
    """Run coroutines concurrently and wait for every one of them.

    Unlike a plain gather, a failing coroutine neither cancels nor hides the
    others: its exception is returned in its slot.

    Returns:
        Results (or exceptions) in the same order as input coroutines.
    """
    return list(await asyncio.gather(*coros, return_exceptions=True))
