"""Coverage analysis engine: region boundaries, intersection counts, batching."""

from covermap.engine.errors import (
    BoundaryFetchError,
    CoverageError,
    InvalidServiceUrlError,
    PersistenceError,
    RegionQueryError,
    SupersededError,
)
from covermap.engine.service import CoverageAnalysis, CoverageService
from covermap.engine.session import CoverageSession

__all__ = [
    "BoundaryFetchError",
    "CoverageError",
    "InvalidServiceUrlError",
    "PersistenceError",
    "RegionQueryError",
    "SupersededError",
    "CoverageAnalysis",
    "CoverageService",
    "CoverageSession",
]
