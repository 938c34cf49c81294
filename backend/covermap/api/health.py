"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from covermap.dependencies import get_coverage_service
from covermap.engine.service import CoverageService
from covermap.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(service: CoverageService = Depends(get_coverage_service)) -> HealthResponse:
    regions = service.analyzer.boundaries.cached
    return HealthResponse(
        status="ok",
        version="0.1.0",
        regions_cached=len(regions) if regions else 0,
        analyses_cached=len(service.cache),
    )
