"""FastAPI dependency injection."""

from __future__ import annotations

from covermap.config import settings
from covermap.engine.service import CoverageService
from covermap.precompute.store import CoverageStore

_service: CoverageService | None = None


def get_settings():
    return settings


def get_coverage_service() -> CoverageService:
    """Process-wide service: region list and result cache live as long as the app."""
    global _service
    if _service is None:
        _service = CoverageService(settings)
    return _service


def get_coverage_store() -> CoverageStore:
    return CoverageStore(settings.coverage_store_path)
