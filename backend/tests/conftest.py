"""Shared test helpers: small regions and a fake ArcGIS server on httpx.MockTransport."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qs

import httpx

from covermap.config import Settings
from covermap.models.coverage import PrecomputedCoverage, Region

BOUNDARY_URL = "https://boundaries.test/arcgis/rest/services/States/MapServer/0"
SERVICE_URL = "https://data.test/arcgis/rest/services/Parcels/FeatureServer"
OTHER_SERVICE_URL = "https://other.test/arcgis/rest/services/Wells/MapServer"


def square(lon: float, lat: float, size: float = 2.0) -> tuple:
    return (
        (float(lon), float(lat)),
        (float(lon + size), float(lat)),
        (float(lon + size), float(lat + size)),
        (float(lon), float(lat + size)),
        (float(lon), float(lat)),
    )


CA = Region(code="06", name="California", abbreviation="CA", rings=(square(-122, 36),))
TX = Region(code="48", name="Texas", abbreviation="TX", rings=(square(-100, 30),))
NY = Region(code="36", name="New York", abbreviation="NY", rings=(square(-76, 42),))
TEST_REGIONS = [CA, TX, NY]

GENERATED = datetime(2025, 3, 9, 12, 0, tzinfo=timezone.utc)


def boundary_payload(regions: list[Region]) -> dict[str, Any]:
    return {
        "features": [
            {
                "attributes": {"STATE": r.code, "NAME": r.name, "STUSAB": r.abbreviation},
                "geometry": {"rings": [[list(pt) for pt in ring] for ring in r.rings]},
            }
            for r in regions
        ]
    }


def region_from_form(request: httpx.Request, regions: list[Region]) -> Region:
    """Identify the queried region by the first vertex of the posted polygon."""
    form = parse_qs(request.content.decode())
    rings = json.loads(form["geometry"][0])["rings"]
    first = tuple(rings[0][0])
    for region in regions:
        if tuple(region.rings[0][0]) == first:
            return region
    raise AssertionError(f"no test region starts at {first}")


class FakeArcGIS:
    """Boundary layer on GET, count queries on POST.

    ``counts`` maps abbreviation to an int, an error payload dict, the string
    "timeout", or a list of those consumed one per request.
    """

    def __init__(
        self,
        counts: dict[str, Any] | None = None,
        regions: list[Region] | None = None,
        boundary: Any = None,
    ) -> None:
        self.counts = counts or {}
        self.regions = regions if regions is not None else TEST_REGIONS
        self.boundary = boundary if boundary is not None else boundary_payload(self.regions)
        self.boundary_calls = 0
        self.query_calls = 0
        self.query_urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            self.boundary_calls += 1
            if isinstance(self.boundary, int):
                return httpx.Response(self.boundary)
            return httpx.Response(200, json=self.boundary)

        self.query_calls += 1
        self.query_urls.append(str(request.url))
        region = region_from_form(request, self.regions)
        value = self.counts.get(region.abbreviation, 0)
        if isinstance(value, list):
            value = value.pop(0)
        if value == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if isinstance(value, int):
            return httpx.Response(200, json={"count": value})
        return httpx.Response(200, json=value)

    def client_factory(self):
        return lambda: httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "boundary_service_url": BOUNDARY_URL,
        # Unbuffered so posted polygons match the test regions exactly
        "live_buffer_km": 0.0,
        "offline_max_retries": 1,
        "offline_retry_delay_s": 0.0,
    }
    values.update(overrides)
    return Settings(**values)


def make_record(states: dict[str, int], generated: datetime = GENERATED) -> PrecomputedCoverage:
    return PrecomputedCoverage(
        generated=generated,
        states=states,
        states_with_data=sum(1 for c in states.values() if c > 0),
        total_intersections=sum(c for c in states.values() if c > 0),
    )
