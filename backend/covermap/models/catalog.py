"""Catalog dataset record: only the fields coverage analysis reads."""

from __future__ import annotations

from pydantic import BaseModel, Field

from covermap.models.coverage import PrecomputedCoverage


class Dataset(BaseModel):
    id: str
    title: str = ""
    public_web_service: str | None = None
    geometry_type: str | None = None
    coverage: PrecomputedCoverage | None = Field(default=None, alias="_coverage")

    # Catalog entries carry many more fields (maturity, attributes, ...)
    model_config = {"populate_by_name": True, "extra": "allow"}
