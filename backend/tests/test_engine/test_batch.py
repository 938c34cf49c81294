"""Tests for the bounded batch runner."""

from __future__ import annotations

import asyncio

from covermap.engine.batch import run_batch
from covermap.engine.retry import RetryPolicy
from covermap.models.coverage import FAILED, Region


def _regions(n: int) -> list[Region]:
    return [Region(code=f"{i:02d}", name=f"Region {i}", abbreviation=f"R{i}") for i in range(n)]


class _Counter:
    """Async region query that tracks how many calls are in flight."""

    def __init__(self, fail: set[str] | None = None) -> None:
        self.fail = fail or set()
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []

    async def __call__(self, region: Region) -> int:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.calls.append(region.code)
        try:
            # Later regions finish first
            await asyncio.sleep(0.001 * (20 - int(region.code)))
            if region.abbreviation in self.fail:
                raise RuntimeError("boom")
            return int(region.code) * 10
        finally:
            self.in_flight -= 1


def test_every_region_exactly_once_in_input_order():
    regions = _regions(12)
    query = _Counter()
    results = asyncio.run(run_batch(query, regions, concurrency=4))
    assert [r.region for r in results] == regions
    assert [r.count for r in results] == [i * 10 for i in range(12)]
    assert sorted(query.calls) == [r.code for r in regions]


def test_concurrency_bound():
    query = _Counter()
    asyncio.run(run_batch(query, _regions(12), concurrency=3))
    assert query.max_in_flight == 3


def test_failure_recorded_as_sentinel():
    query = _Counter(fail={"R2"})
    results = asyncio.run(run_batch(query, _regions(5), concurrency=2))
    assert len(results) == 5
    assert results[2].count == FAILED
    assert results[2].failed
    assert [r.count for r in results if not r.failed] == [0, 10, 30, 40]


def test_progress_reported_per_completion():
    progress: list[tuple[int, int]] = []
    asyncio.run(run_batch(_Counter(), _regions(6), concurrency=2, on_progress=lambda d, t: progress.append((d, t))))
    assert [d for d, _ in progress] == [1, 2, 3, 4, 5, 6]
    assert all(t == 6 for _, t in progress)


def test_retry_recovers_flaky_region():
    attempts: dict[str, int] = {}

    async def flaky(region: Region) -> int:
        attempts[region.code] = attempts.get(region.code, 0) + 1
        if attempts[region.code] == 1:
            raise RuntimeError("transient")
        return 5

    results = asyncio.run(run_batch(flaky, _regions(3), retry=RetryPolicy(retries=1, base_delay_s=0.0)))
    assert [r.count for r in results] == [5, 5, 5]
    assert all(n == 2 for n in attempts.values())


def test_empty_batch():
    assert asyncio.run(run_batch(_Counter(), [])) == []
