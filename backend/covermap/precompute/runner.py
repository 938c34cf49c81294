"""Offline coverage precomputation.

Runs the same region-count algorithm as the live path for every qualifying
catalog dataset, with the offline profile (retry, no buffering) and a
second, outer concurrency bound across datasets. Total requests in flight
stay below dataset_concurrency * region_concurrency.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import httpx

from covermap.config import Settings, settings as default_settings
from covermap.engine.analyzer import CoverageAnalyzer
from covermap.engine.config import offline_profile
from covermap.engine.errors import InvalidServiceUrlError, PersistenceError
from covermap.engine.service import ClientFactory, default_client
from covermap.engine.targets import parse_target
from covermap.models.catalog import Dataset
from covermap.models.coverage import PrecomputedCoverage, Region
from covermap.precompute.catalog import is_spatial_dataset
from covermap.precompute.store import CoverageStore

logger = logging.getLogger(__name__)

# Log batch progress every N regions
_PROGRESS_EVERY = 10


@dataclass
class PrecomputeOptions:
    force: bool = False
    dataset_filter: str | None = None
    dry_run: bool = True


@dataclass
class DatasetOutcome:
    dataset_id: str
    ok: bool
    record: PrecomputedCoverage | None = None
    error: str = ""
    failed_regions: int = 0
    persisted: bool = False


@dataclass
class PrecomputeReport:
    selected: int = 0
    dry_run: bool = True
    outcomes: list[DatasetOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def errored(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def written(self) -> int:
        return sum(1 for o in self.outcomes if o.persisted)


def select_datasets(
    datasets: Sequence[Dataset],
    options: PrecomputeOptions,
    store: CoverageStore | None = None,
) -> list[Dataset]:
    """Spatial ArcGIS datasets, optionally one id, skipping already-covered unless forced."""
    stored: set[str] = set()
    if store is not None and not options.force:
        try:
            stored = set(store.all())
        except PersistenceError as e:
            logger.warning("%s; treating every dataset as unprocessed", e)

    selected: list[Dataset] = []
    for ds in datasets:
        if not is_spatial_dataset(ds):
            continue
        if options.dataset_filter and ds.id != options.dataset_filter:
            continue
        if not options.force:
            if ds.coverage is not None and ds.coverage.states:
                continue
            if ds.id in stored:
                continue
        selected.append(ds)
    return selected


async def _process_dataset(
    analyzer: CoverageAnalyzer,
    client: httpx.AsyncClient,
    dataset: Dataset,
    regions: list[Region],
) -> DatasetOutcome:
    try:
        target = parse_target(dataset.public_web_service)
    except InvalidServiceUrlError:
        logger.warning("  %s: could not parse ArcGIS REST URL", dataset.id)
        return DatasetOutcome(dataset_id=dataset.id, ok=False, error="Could not parse ArcGIS REST URL")

    def progress(done: int, total: int) -> None:
        if done % _PROGRESS_EVERY == 0 or done == total:
            logger.info("  %s: %d/%d states queried", dataset.id, done, total)

    results = await analyzer.count_regions(client, target, regions, on_progress=progress)
    record = PrecomputedCoverage.from_results(results)
    failed = sum(1 for r in results if r.failed)
    logger.info(
        "  ✓ %s: %d states with data, %s intersections%s",
        dataset.id,
        record.states_with_data,
        f"{record.total_intersections:,}",
        f" ({failed} failed)" if failed else "",
    )
    return DatasetOutcome(dataset_id=dataset.id, ok=True, record=record, failed_regions=failed)


async def run_precomputation(
    datasets: Sequence[Dataset],
    options: PrecomputeOptions,
    store: CoverageStore | None = None,
    settings: Settings | None = None,
    client_factory: ClientFactory | None = None,
) -> PrecomputeReport:
    """Compute (and unless dry-run, persist) coverage for every qualifying dataset.

    Region geometry is fetched once for the whole run; failing that is fatal
    (BoundaryFetchError propagates). Per-dataset failures, including
    persistence, are recorded in the report and never stop the others.
    """
    settings = settings or default_settings
    profile = offline_profile(settings)
    to_process = select_datasets(datasets, options, store)
    report = PrecomputeReport(selected=len(to_process), dry_run=options.dry_run)
    logger.info("%d dataset(s) to process", len(to_process))
    if not to_process:
        return report

    analyzer = CoverageAnalyzer(profile, settings.boundary_service_url)
    cursor = 0

    async with (client_factory or default_client)() as client:
        regions = await analyzer.regions(client)

        async def worker() -> None:
            nonlocal cursor
            while cursor < len(to_process):
                i = cursor
                cursor += 1
                ds = to_process[i]
                logger.info("[%d/%d] %s  %s", i + 1, len(to_process), ds.id, ds.public_web_service)
                try:
                    outcome = await _process_dataset(analyzer, client, ds, regions)
                except Exception as e:
                    logger.error("  ✗ %s: %s", ds.id, e)
                    outcome = DatasetOutcome(dataset_id=ds.id, ok=False, error=str(e))

                if outcome.ok and not options.dry_run and store is not None:
                    try:
                        store.save(ds.id, outcome.record)
                        outcome.persisted = True
                    except PersistenceError as e:
                        logger.error("  ✗ %s: %s", ds.id, e)
                        outcome.ok = False
                        outcome.error = str(e)
                report.outcomes.append(outcome)

        n_workers = max(1, min(settings.offline_dataset_concurrency, len(to_process)))
        await asyncio.gather(*(worker() for _ in range(n_workers)))

    logger.info(
        "Precomputation done: %d processed, %d succeeded, %d errors",
        report.processed, report.succeeded, report.errored,
    )
    return report
