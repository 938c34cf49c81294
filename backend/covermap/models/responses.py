"""API response models."""

from __future__ import annotations

from pydantic import BaseModel

from covermap.models.coverage import CoverageSummary


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    regions_cached: int = 0
    analyses_cached: int = 0


class CoverageResponse(BaseModel):
    svg: str
    summary: CoverageSummary
    status: str = ""
    cached: bool = False
    precomputed: bool = False
