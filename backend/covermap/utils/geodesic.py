"""Geodesic polygon buffering via a local azimuthal-equidistant projection.

Distances are true ground metres near the region's center; for the
state-sized polygons handled here the distortion at the edges is far below
the buffer distance itself.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import reduce

from pyproj import CRS, Transformer
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient
from shapely.ops import transform as shapely_transform

CRS_WGS84 = "EPSG:4326"

# Output coordinate precision in degrees, about 0.1 m
_PRECISION = 6


def rings_to_geometry(rings: Sequence[Sequence[Sequence[float]]]) -> BaseGeometry:
    """Combine rings with even-odd semantics: a ring inside another is a hole."""
    polygons = [Polygon(ring).buffer(0) for ring in rings if len(ring) >= 3]
    polygons = [p for p in polygons if not p.is_empty]
    if not polygons:
        return Polygon()
    return reduce(lambda acc, p: acc.symmetric_difference(p), polygons)


def geometry_to_rings(geom: BaseGeometry) -> list[list[tuple[float, float]]]:
    """Flatten polygonal geometry to rings, outer boundaries clockwise (ArcGIS convention)."""
    if isinstance(geom, Polygon):
        polygons = [geom]
    elif isinstance(geom, MultiPolygon):
        polygons = list(geom.geoms)
    elif hasattr(geom, "geoms"):
        polygons = [g for g in geom.geoms if isinstance(g, Polygon)]
    else:
        polygons = []

    rings: list[list[tuple[float, float]]] = []
    for poly in polygons:
        if poly.is_empty:
            continue
        poly = orient(poly, sign=-1.0)
        for ring in (poly.exterior, *poly.interiors):
            rings.append([(round(x, _PRECISION), round(y, _PRECISION)) for x, y in ring.coords])
    return rings


def _local_crs(lon: float, lat: float) -> CRS:
    return CRS.from_proj4(f"+proj=aeqd +lat_0={lat} +lon_0={lon} +datum=WGS84 +units=m +no_defs")


def geodesic_buffer(
    rings: Sequence[Sequence[Sequence[float]]],
    distance_km: float,
) -> list[list[tuple[float, float]]] | None:
    """Grow (positive) or shrink (negative) a lon/lat polygon by ``distance_km``.

    Returns None when the result is empty, e.g. a small island shrunk by more
    than its own width.
    """
    geom = rings_to_geometry(rings)
    if geom.is_empty:
        return None

    c = geom.centroid
    local = _local_crs(c.x, c.y)
    to_local = Transformer.from_crs(CRS_WGS84, local, always_xy=True)
    to_wgs84 = Transformer.from_crs(local, CRS_WGS84, always_xy=True)

    buffered = shapely_transform(to_local.transform, geom).buffer(distance_km * 1000.0)
    if buffered.is_empty:
        return None

    out = geometry_to_rings(shapely_transform(to_wgs84.transform, buffered))
    return out or None
