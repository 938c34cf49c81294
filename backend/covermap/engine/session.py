"""Interactive coverage session: one render surface, many dataset switches.

Each ``show_dataset`` call opens a new generation. Anything still running
for an older dataset finishes in the background and is dropped.
"""

from __future__ import annotations

import logging
from typing import Protocol

from covermap.engine.errors import (
    BoundaryFetchError,
    InvalidServiceUrlError,
    PersistenceError,
    SupersededError,
)
from covermap.engine.service import CoverageService
from covermap.models.catalog import Dataset
from covermap.models.coverage import PrecomputedCoverage
from covermap.render.choropleth import CoverageMap

logger = logging.getLogger(__name__)


class RenderSurface(Protocol):
    def show_status(self, text: str) -> None: ...

    def show_map(self, coverage_map: CoverageMap, status: str) -> None: ...


class PrecomputedLookup(Protocol):
    def load_precomputed(self, dataset_id: str) -> PrecomputedCoverage | None: ...


class CoverageSession:
    def __init__(
        self,
        service: CoverageService,
        surface: RenderSurface,
        store: PrecomputedLookup | None = None,
    ) -> None:
        self.service = service
        self.surface = surface
        self.store = store

    def _precomputed_for(self, dataset: Dataset) -> PrecomputedCoverage | None:
        """Stored record first, then one embedded in the catalog entry. Unreadable store = live run."""
        if self.store is not None:
            try:
                record = self.store.load_precomputed(dataset.id)
            except PersistenceError as e:
                logger.warning("Ignoring coverage store for %s: %s", dataset.id, e)
                record = None
            if record is not None:
                return record
        return dataset.coverage

    async def show_dataset(self, dataset: Dataset) -> None:
        token = self.service.guard.new_generation()
        guard = self.service.guard

        def status(text: str) -> None:
            if guard.is_current(token):
                self.surface.show_status(text)

        precomputed = self._precomputed_for(dataset)

        if precomputed is not None:
            status(f"Loading pre-computed coverage ({precomputed.generated_label})…")
        else:
            status("Fetching state boundaries from Census Bureau…")

        def on_progress(done: int, total: int) -> None:
            if done == 0:
                status(f"Analyzing coverage across {total} states…")
            else:
                status(f"Analyzing coverage: {done} / {total} states…")

        try:
            analysis = await self.service.analyze_coverage(
                dataset.public_web_service or "",
                on_progress=on_progress,
                precomputed=precomputed,
                token=token,
            )
        except InvalidServiceUrlError as e:
            status(str(e))
            return
        except SupersededError:
            logger.warning("Dropping coverage for %s (superseded)", dataset.id)
            return
        except BoundaryFetchError as e:
            logger.error("Census state fetch failed: %s", e)
            if precomputed is not None:
                summary = precomputed.text_summary()
                status(
                    f"{summary.states_with_data} states with data · {summary.total_features:,} intersections"
                    f" (pre-computed {precomputed.generated_label})."
                    " Map unavailable, Census boundary fetch failed."
                )
            else:
                status("Could not fetch state boundaries from Census Bureau TIGER service.")
            return

        if not guard.is_current(token):
            return
        self.surface.show_map(analysis.map, analysis.status)
