"""The coverage algorithm shared by the live and offline paths.

region fetch (once) -> per-region count with the profile's buffer, retry and
concurrency. CoverageService and the precomputation runner each hold one
instance with their own profile.
"""

from __future__ import annotations

import functools
import logging

import httpx

from covermap.engine.batch import ProgressCallback, run_batch
from covermap.engine.boundaries import RegionBoundaryProvider
from covermap.engine.config import AnalysisProfile
from covermap.engine.query import IntersectionQueryExecutor
from covermap.engine.targets import QueryTarget
from covermap.models.coverage import BatchResult, Region

logger = logging.getLogger(__name__)


class CoverageAnalyzer:
    def __init__(self, profile: AnalysisProfile, boundary_service_url: str) -> None:
        self.profile = profile
        self.boundaries = RegionBoundaryProvider(
            boundary_service_url,
            timeout_s=profile.boundary_timeout_s,
            max_allowable_offset=profile.max_allowable_offset,
            retry=profile.retry,
        )
        self.executor = IntersectionQueryExecutor(timeout_s=profile.query_timeout_s)

    async def regions(self, client: httpx.AsyncClient) -> list[Region]:
        return await self.boundaries.fetch_regions(client)

    async def count_regions(
        self,
        client: httpx.AsyncClient,
        target: QueryTarget,
        regions: list[Region],
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        logger.info(
            "Analyzing %s layer %d across %d regions (%s profile)",
            target.service_url, target.layer_id, len(regions), self.profile.name,
        )
        query = functools.partial(
            self.executor.count_intersecting, client, target, buffer_km=self.profile.buffer_km,
        )
        return await run_batch(
            query,
            regions,
            concurrency=self.profile.concurrency,
            retry=self.profile.retry,
            on_progress=on_progress,
        )
