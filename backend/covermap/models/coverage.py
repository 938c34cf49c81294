"""Core coverage data model: regions, per-region results, precomputed records.

Region / IntersectionResult are plain frozen dataclasses (hot path, never
serialized directly). Anything that crosses a process boundary is pydantic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, Field

# count value recorded when a region's query failed
FAILED = -1

Ring = tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class Region:
    """One reference region (state or DC) with its generalized boundary."""

    code: str  # zero-padded FIPS code
    name: str
    abbreviation: str
    # Rings of (lon, lat) pairs, outer boundaries and holes mixed
    rings: tuple[Ring, ...] = ()

    @property
    def has_geometry(self) -> bool:
        return any(len(ring) > 0 for ring in self.rings)


@dataclass(frozen=True)
class IntersectionResult:
    region: Region
    count: int

    @property
    def failed(self) -> bool:
        return self.count == FAILED

    @property
    def has_data(self) -> bool:
        return self.count > 0


BatchResult = list[IntersectionResult]


class CoverageSummary(BaseModel):
    states_with_data: int = 0
    total_features: int = 0
    total_states: int = 0
    failed_count: int = 0

    @classmethod
    def from_results(cls, results: BatchResult) -> CoverageSummary:
        return cls(
            states_with_data=sum(1 for r in results if r.has_data),
            total_features=sum(r.count for r in results if r.count >= 0),
            total_states=len(results),
            failed_count=sum(1 for r in results if r.failed),
        )

    def summary_text(self) -> str:
        text = (
            f"{self.states_with_data} of {self.total_states} states with data"
            f" · {self.total_features:,} intersections"
        )
        if self.failed_count > 0:
            text += f" · {self.failed_count} state(s) could not be queried"
        return text


class PrecomputedCoverage(BaseModel):
    """Per-dataset coverage written by the offline tool, read by the live path."""

    generated: datetime
    states: dict[str, int] = Field(default_factory=dict)
    states_with_data: int = Field(0, alias="statesWithData")
    total_intersections: int = Field(0, alias="totalIntersections")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_results(
        cls, results: BatchResult, generated: datetime | None = None,
    ) -> PrecomputedCoverage:
        counts = {r.region.abbreviation: r.count for r in results}
        return cls(
            generated=generated or datetime.now(timezone.utc),
            states=counts,
            states_with_data=sum(1 for c in counts.values() if c > 0),
            total_intersections=sum(c for c in counts.values() if c > 0),
        )

    def count_for(self, abbreviation: str) -> int:
        """Stored count; a region absent from the record counts as zero."""
        return self.states.get(abbreviation, 0)

    def reconcile(self, regions: list[Region]) -> BatchResult:
        return [IntersectionResult(region=r, count=self.count_for(r.abbreviation)) for r in regions]

    def text_summary(self) -> CoverageSummary:
        """Summary computed from the stored counts alone (no geometry)."""
        values = list(self.states.values())
        return CoverageSummary(
            states_with_data=sum(1 for c in values if c > 0),
            total_features=sum(c for c in values if c > 0),
            total_states=len(values),
            failed_count=sum(1 for c in values if c == FAILED),
        )

    @property
    def generated_label(self) -> str:
        g = self.generated
        return f"{g:%b} {g.day}, {g.year}"
