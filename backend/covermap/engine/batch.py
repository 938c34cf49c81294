"""Bounded batch runner: every region through the query executor, N at a time."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from covermap.engine.retry import NO_RETRY, RetryPolicy, call_with_retry
from covermap.models.coverage import FAILED, BatchResult, IntersectionResult, Region

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
RegionQuery = Callable[[Region], Awaitable[int]]


async def run_batch(
    query: RegionQuery,
    regions: Sequence[Region],
    concurrency: int = 4,
    retry: RetryPolicy = NO_RETRY,
    on_progress: ProgressCallback | None = None,
) -> BatchResult:
    """Query every region with at most ``concurrency`` requests in flight.

    Workers share one cursor; claiming a region is a read-and-advance with
    no await in between, so no region is claimed twice. A failing region is
    recorded with the FAILED sentinel and never stops its siblings.
    Results come back in input order regardless of completion order.
    """
    total = len(regions)
    slots: list[IntersectionResult | None] = [None] * total
    cursor = 0
    completed = 0
    failed = 0
    start = time.perf_counter()

    async def worker() -> None:
        nonlocal cursor, completed, failed
        while cursor < total:
            i = cursor
            cursor += 1
            region = regions[i]
            try:
                count = await call_with_retry(functools.partial(query, region), retry)
            except Exception as e:
                logger.warning("  %s query FAILED: %s", region.abbreviation or region.code, e)
                count = FAILED
                failed += 1
            slots[i] = IntersectionResult(region=region, count=count)
            completed += 1
            if on_progress is not None:
                on_progress(completed, total)

    n_workers = max(1, min(concurrency, total))
    await asyncio.gather(*(worker() for _ in range(n_workers)))

    elapsed = (time.perf_counter() - start) * 1000
    logger.info("Batch complete: %d regions (%d failed) in %.0fms", total, failed, elapsed)
    return [r for r in slots if r is not None]
