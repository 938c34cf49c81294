"""Query targets: which layer endpoint a count query goes to.

A dataset URL either names one layer (``.../FeatureServer/3``) or a whole
service (``.../MapServer``) that needs a layer id appended. Both become an
explicit variant so call sites never re-parse strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from covermap.engine.errors import InvalidServiceUrlError

_LAYER_URL_RE = re.compile(r"^(.*/(?:MapServer|FeatureServer|ImageServer))/([0-9]+)$", re.IGNORECASE)
_SERVICE_TYPES = ("/MAPSERVER", "/FEATURESERVER", "/IMAGESERVER")


def normalize_service_url(url: str | None) -> str:
    return (url or "").strip().rstrip("/")


def looks_like_arcgis_service(url: str | None) -> bool:
    """ArcGIS Server can live under any context path; /rest/services/ + a service type is the marker."""
    u = (url or "").upper()
    return "/REST/SERVICES/" in u and any(t in u for t in _SERVICE_TYPES)


@dataclass(frozen=True)
class LayerUrl:
    """URL already addresses a specific layer."""

    service_url: str
    layer_id: int

    @property
    def layer_url(self) -> str:
        return f"{self.service_url}/{self.layer_id}"


@dataclass(frozen=True)
class ServiceUrl:
    """Service root URL; the layer id is appended for queries."""

    service_url: str
    layer_id: int = 0

    @property
    def layer_url(self) -> str:
        return f"{self.service_url}/{self.layer_id}"


QueryTarget = Union[LayerUrl, ServiceUrl]


def parse_target(url: str | None, layer_id: int | None = None) -> QueryTarget:
    """Classify ``url``. A layer id embedded in the URL wins over ``layer_id``."""
    base = normalize_service_url(url)
    if not base:
        raise InvalidServiceUrlError("No public web service URL available for coverage analysis.")
    if not looks_like_arcgis_service(base):
        raise InvalidServiceUrlError("Coverage analysis requires an ArcGIS REST Map/Feature service.")

    m = _LAYER_URL_RE.match(base)
    if m:
        return LayerUrl(service_url=m.group(1), layer_id=int(m.group(2)))
    return ServiceUrl(service_url=base, layer_id=layer_id if layer_id is not None else 0)


def query_url(target: QueryTarget) -> str:
    return f"{target.layer_url}/query"


def cache_key(target: QueryTarget) -> tuple[str, int]:
    """(service endpoint, layer id); equal for a layer URL and its service+id spelling."""
    return (target.service_url, target.layer_id)
