"""Region boundary provider: the 51 reference polygons, fetched once per process."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from covermap.engine.errors import BoundaryFetchError
from covermap.engine.retry import NO_RETRY, RetryPolicy, call_with_retry
from covermap.models.coverage import Region

logger = logging.getLogger(__name__)

# 50 US states + DC (FIPS codes)
US_STATE_FIPS = frozenset({
    "01", "02", "04", "05", "06", "08", "09", "10", "11", "12", "13", "15", "16", "17", "18", "19", "20",
    "21", "22", "23", "24", "25", "26", "27", "28", "29", "30", "31", "32", "33", "34", "35", "36", "37",
    "38", "39", "40", "41", "42", "44", "45", "46", "47", "48", "49", "50", "51", "53", "54", "55", "56",
})

_OUT_FIELDS = "STATE,NAME,STUSAB"


def _attr(attributes: dict[str, Any], *keys: str) -> Any:
    """Case-insensitive attribute lookup; field casing varies between services."""
    lowered = {k.lower(): v for k, v in attributes.items()}
    for key in keys:
        value = lowered.get(key.lower())
        if value is not None:
            return value
    return ""


def parse_regions(payload: Any) -> list[Region]:
    """Convert an ArcGIS query response into allowlisted regions with geometry."""
    if not isinstance(payload, dict):
        raise BoundaryFetchError("Census state boundary response was not a JSON object")
    if payload.get("error"):
        err = payload["error"]
        raise BoundaryFetchError(f"Census state boundary service error: {err.get('message') or err}")

    features = payload.get("features")
    if not isinstance(features, list) or not features:
        raise BoundaryFetchError("Census state boundary query returned no features")

    regions: list[Region] = []
    for feature in features:
        attributes = feature.get("attributes") or {}
        code = str(_attr(attributes, "STATE", "STATEFP", "GEOID")).zfill(2)
        if code not in US_STATE_FIPS:
            continue
        geometry = feature.get("geometry") or {}
        rings = tuple(
            tuple((float(pt[0]), float(pt[1])) for pt in ring)
            for ring in geometry.get("rings") or []
        )
        region = Region(
            code=code,
            name=str(_attr(attributes, "NAME")),
            abbreviation=str(_attr(attributes, "STUSAB")),
            rings=rings,
        )
        if region.has_geometry:
            regions.append(region)
    return regions


class RegionBoundaryProvider:
    """Fetches and caches reference region geometry.

    A successful fetch is kept for the lifetime of the provider; a failed
    one is not, so the next call tries again.
    """

    def __init__(
        self,
        service_url: str,
        timeout_s: float = 25.0,
        max_allowable_offset: float = 0.05,
        retry: RetryPolicy = NO_RETRY,
    ) -> None:
        self.service_url = service_url.rstrip("/")
        self.timeout_s = timeout_s
        self.max_allowable_offset = max_allowable_offset
        self.retry = retry
        self._regions: list[Region] | None = None

    @property
    def cached(self) -> list[Region] | None:
        return self._regions

    def query_params(self) -> dict[str, str]:
        return {
            "where": "1=1",
            "outFields": _OUT_FIELDS,
            "returnGeometry": "true",
            "outSR": "4326",
            "geometryPrecision": "2",
            "maxAllowableOffset": str(self.max_allowable_offset),
            "resultRecordCount": "60",
            "f": "json",
        }

    async def _request(self, client: httpx.AsyncClient) -> Any:
        response = await client.get(
            f"{self.service_url}/query",
            params=self.query_params(),
            timeout=self.timeout_s,
        )
        response.raise_for_status()
        return response.json()

    async def fetch_regions(self, client: httpx.AsyncClient) -> list[Region]:
        if self._regions is not None:
            return self._regions

        logger.info("Fetching state boundaries from %s", self.service_url)
        try:
            payload = await call_with_retry(
                lambda: self._request(client),
                self.retry,
                retry_on=(httpx.HTTPError, ValueError),
            )
        except httpx.HTTPError as e:
            raise BoundaryFetchError(f"Census state boundary query failed: {e}") from e
        except ValueError as e:
            raise BoundaryFetchError(f"Census state boundary response was not JSON: {e}") from e

        regions = parse_regions(payload)
        if not regions:
            raise BoundaryFetchError("Census state boundary query returned no usable regions")

        if len(regions) != len(US_STATE_FIPS):
            logger.warning("Expected %d state boundaries, got %d", len(US_STATE_FIPS), len(regions))
        self._regions = regions
        logger.info("Found %d state boundaries", len(regions))
        return regions
