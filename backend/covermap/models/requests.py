"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CoverageRequest(BaseModel):
    service_url: str = Field(..., description="ArcGIS REST MapServer/FeatureServer URL (service or layer)")
    layer_id: int | None = Field(
        default=None,
        description="Layer id when service_url names a whole service (defaults to 0)",
    )
