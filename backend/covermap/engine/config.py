"""Analysis profiles: the live and offline instantiations of one algorithm.

Both paths run region-fetch-once + per-region count; they differ only in
these knobs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from covermap.config import Settings
from covermap.engine.retry import NO_RETRY, RetryPolicy


@dataclass(frozen=True)
class AnalysisProfile:
    name: str
    # Worker pool size for one dataset's region batch
    concurrency: int = 4
    # Negative = shrink each region inward before querying; None = no buffering
    buffer_km: float | None = None
    retry: RetryPolicy = field(default_factory=lambda: NO_RETRY)
    query_timeout_s: float = 10.0
    boundary_timeout_s: float = 25.0
    # Boundary generalization tolerance in degrees
    max_allowable_offset: float = 0.05


def live_profile(settings: Settings) -> AnalysisProfile:
    """Interactive path: buffered regions, no retry (a failed region shows as failed)."""
    return AnalysisProfile(
        name="live",
        concurrency=settings.live_concurrency,
        buffer_km=settings.live_buffer_km,
        retry=NO_RETRY,
        query_timeout_s=settings.query_timeout_s,
        boundary_timeout_s=settings.boundary_timeout_s,
        max_allowable_offset=settings.live_max_allowable_offset,
    )


def offline_profile(settings: Settings) -> AnalysisProfile:
    """Batch path: unbuffered by default, explicit retry per region."""
    return AnalysisProfile(
        name="offline",
        concurrency=settings.offline_region_concurrency,
        buffer_km=settings.offline_buffer_km,
        retry=RetryPolicy(
            retries=settings.offline_max_retries,
            base_delay_s=settings.offline_retry_delay_s,
        ),
        query_timeout_s=settings.offline_query_timeout_s,
        boundary_timeout_s=settings.offline_boundary_timeout_s,
        max_allowable_offset=settings.offline_max_allowable_offset,
    )
