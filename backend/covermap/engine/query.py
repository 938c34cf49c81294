"""Intersection query executor: one region, one count."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pyproj.exceptions import ProjError
from shapely.errors import GEOSException

from covermap.engine.errors import RegionQueryError
from covermap.engine.targets import QueryTarget, query_url
from covermap.models.coverage import Region
from covermap.utils.geodesic import geodesic_buffer

logger = logging.getLogger(__name__)

Rings = Sequence[Sequence[tuple[float, float]]]


def esri_polygon_json(rings: Rings) -> str:
    return json.dumps(
        {"rings": [[list(pt) for pt in ring] for ring in rings], "spatialReference": {"wkid": 4326}},
        separators=(",", ":"),
    )


def parse_count(payload: Any) -> int:
    """Extract the feature count, or raise with the service's own error message."""
    if isinstance(payload, dict):
        count = payload.get("count")
        if isinstance(count, int) and not isinstance(count, bool) and count >= 0:
            return count
        err = payload.get("error")
        if isinstance(err, dict):
            raise RegionQueryError(err.get("message") or f"Service error (code {err.get('code')})")
        if err:
            raise RegionQueryError(f"Service error: {err}")
    raise RegionQueryError("Response did not include a feature count")


class IntersectionQueryExecutor:
    """Counts target features intersecting a region polygon.

    Inward-buffered polygons depend only on (region, distance), so they are
    computed once and reused across datasets.
    """

    def __init__(self, timeout_s: float = 10.0) -> None:
        self.timeout_s = timeout_s
        self._buffered: dict[tuple[str, float], Rings] = {}

    def query_rings(self, region: Region, buffer_km: float | None) -> Rings:
        """Polygon actually sent: inward-buffered when requested, else the original.

        A buffer that collapses the region (islands smaller than the
        distance) or fails outright falls back to the unbuffered rings.
        """
        if buffer_km is None or buffer_km >= 0:
            return region.rings

        key = (region.code, buffer_km)
        if key in self._buffered:
            return self._buffered[key]

        try:
            buffered = geodesic_buffer(region.rings, buffer_km)
        except (GEOSException, ProjError, ValueError) as e:
            logger.debug("Buffer failed for %s (%s), using original polygon", region.abbreviation, e)
            buffered = None
        if not buffered:
            logger.debug("Buffer collapsed %s, using original polygon", region.abbreviation)
            buffered = region.rings

        self._buffered[key] = buffered
        return buffered

    def form_data(self, rings: Rings) -> dict[str, str]:
        return {
            "where": "1=1",
            "geometry": esri_polygon_json(rings),
            "geometryType": "esriGeometryPolygon",
            "inSR": "4326",
            "spatialRel": "esriSpatialRelIntersects",
            "returnCountOnly": "true",
            "f": "json",
        }

    async def count_intersecting(
        self,
        client: httpx.AsyncClient,
        target: QueryTarget,
        region: Region,
        buffer_km: float | None = None,
    ) -> int:
        rings = await asyncio.to_thread(self.query_rings, region, buffer_km)
        url = query_url(target)

        try:
            response = await client.post(url, data=self.form_data(rings), timeout=self.timeout_s)
        except httpx.TimeoutException as e:
            raise RegionQueryError(f"Timeout querying {region.abbreviation}", region.code) from e
        except httpx.HTTPError as e:
            raise RegionQueryError(f"Request failed for {region.abbreviation}: {e}", region.code) from e

        if response.status_code >= 400:
            raise RegionQueryError(f"HTTP {response.status_code} from {url}", region.code)
        try:
            payload = response.json()
        except ValueError as e:
            raise RegionQueryError(f"JSON parse error from POST {url}", region.code) from e

        try:
            count = parse_count(payload)
        except RegionQueryError as e:
            e.region_code = region.code
            raise
        logger.debug("  %s: %d features", region.abbreviation, count)
        return count
