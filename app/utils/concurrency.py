"""Bounded-concurrency helpers for fan-out over remote providers.

Two independent knobs:
- ``run_in_chunks`` limits how many calls are in flight at once by
  dispatching fixed-size chunks and waiting for each chunk to settle.
- ``FixedDelayPacing`` decides how long to wait between chunks.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

SleepFunc = Callable[[float], Awaitable[None]]


class FixedDelayPacing:
    """Wait a fixed delay between chunks, never after the last one."""

    def __init__(self, delay_seconds: float = 1.0, sleep: SleepFunc = asyncio.sleep):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def between_chunks(self, finished_chunk: int, total_chunks: int) -> None:
        """
        Pause after ``finished_chunk`` (0-based) unless it was the last chunk.

        Args:
            finished_chunk: Index of the chunk that just settled
            total_chunks: Number of chunks in the run
        """
        if finished_chunk >= total_chunks - 1 or self.delay_seconds == 0:
            return
        logger.debug(f"Pacing {self.delay_seconds}s after chunk {finished_chunk + 1}/{total_chunks}")
        await self._sleep(self.delay_seconds)


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Split a sequence into consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [items[i:i + size] for i in range(0, len(items), size)]


async def run_in_chunks(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    chunk_size: int,
    pacing: FixedDelayPacing
) -> List[R]:
    """
    Run ``worker`` over ``items`` with at most ``chunk_size`` calls in flight.

    Items within a chunk run concurrently; chunk N+1 starts only after every
    call in chunk N has settled and the pacing policy has returned. Results
    are returned in input order regardless of completion order. ``worker``
    is expected to handle its own errors; an exception escaping it aborts
    the run.

    Args:
        items: Inputs in the order results should be returned
        worker: Coroutine function applied to each item
        chunk_size: Maximum concurrent calls
        pacing: Delay policy applied between chunks

    Returns:
        One result per input item, in input order
    """
    chunks = chunked(items, chunk_size)
    results: List[R] = []

    for index, chunk in enumerate(chunks):
        logger.debug(f"Dispatching chunk {index + 1}/{len(chunks)} ({len(chunk)} items)")
        results.extend(await asyncio.gather(*(worker(item) for item in chunk)))
        await pacing.between_chunks(index, len(chunks))

    return results
