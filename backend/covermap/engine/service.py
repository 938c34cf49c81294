"""CoverageService: live entry point: cache -> precomputed seed -> live batch -> render."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from covermap.config import Settings
from covermap.engine.analyzer import CoverageAnalyzer
from covermap.engine.batch import ProgressCallback
from covermap.engine.cache import GenerationGuard, ResultCache
from covermap.engine.config import AnalysisProfile, live_profile
from covermap.engine.targets import cache_key, parse_target
from covermap.models.coverage import CoverageSummary, PrecomputedCoverage
from covermap.render.choropleth import CoverageMap, render_coverage

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.AsyncClient]


def default_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(follow_redirects=True)


@dataclass(frozen=True)
class CoverageAnalysis:
    map: CoverageMap
    cached: bool = False
    precomputed: PrecomputedCoverage | None = None

    @property
    def summary(self) -> CoverageSummary:
        return self.map.summary

    @property
    def status(self) -> str:
        text = self.summary.summary_text()
        if self.precomputed is not None:
            text += f" (pre-computed {self.precomputed.generated_label})"
        return text


class CoverageService:
    """Holds the process-lifetime state: region list, result cache, generation counter."""

    def __init__(
        self,
        settings: Settings,
        profile: AnalysisProfile | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.profile = profile or live_profile(settings)
        self.analyzer = CoverageAnalyzer(self.profile, settings.boundary_service_url)
        self.cache = ResultCache()
        self.guard = GenerationGuard()
        self.client_factory = client_factory or default_client

    async def analyze_coverage(
        self,
        service_url: str,
        layer_id: int | None = None,
        on_progress: ProgressCallback | None = None,
        precomputed: PrecomputedCoverage | None = None,
        token: int | None = None,
    ) -> CoverageAnalysis:
        """Coverage map for one dataset layer.

        With a ``token`` every step re-checks the generation guard:
        progress is suppressed once superseded and the final result raises
        SupersededError instead of being cached or returned. In-flight
        queries are left to finish.
        """
        target = parse_target(service_url, layer_id)
        key = cache_key(target)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Coverage cache hit for %s layer %d", *key)
            return CoverageAnalysis(map=render_coverage(cached), cached=True)

        def progress(done: int, total: int) -> None:
            if on_progress is not None and (token is None or self.guard.is_current(token)):
                on_progress(done, total)

        async with self.client_factory() as client:
            regions = await self.analyzer.regions(client)
            self.guard.check(token)

            if precomputed is not None:
                results = precomputed.reconcile(regions)
                self.cache.put(key, results)
                logger.info("Seeded coverage cache for %s layer %d from precomputed record", *key)
                return CoverageAnalysis(map=render_coverage(results), precomputed=precomputed)

            progress(0, len(regions))
            results = await self.analyzer.count_regions(client, target, regions, on_progress=progress)

        self.guard.check(token)
        self.cache.put(key, results)
        return CoverageAnalysis(map=render_coverage(results))
