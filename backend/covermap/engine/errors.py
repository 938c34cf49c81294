"""Coverage analysis error taxonomy."""

from __future__ import annotations


class CoverageError(Exception):
    """Base class for coverage analysis failures."""


class InvalidServiceUrlError(CoverageError):
    """URL is empty or is not an ArcGIS REST Map/Feature/Image service."""


class BoundaryFetchError(CoverageError):
    """Region geometry could not be obtained; nothing downstream can run."""


class RegionQueryError(CoverageError):
    """A single region's count query failed. Recorded as the -1 sentinel."""

    def __init__(self, message: str, region_code: str = "") -> None:
        super().__init__(message)
        self.region_code = region_code


class SupersededError(CoverageError):
    """The analysis generation was replaced by a newer one before completion."""

    def __init__(self, token: int, current: int) -> None:
        super().__init__(f"generation {token} superseded by {current}")
        self.token = token
        self.current = current


class PersistenceError(CoverageError):
    """Coverage store could not be read or written."""
