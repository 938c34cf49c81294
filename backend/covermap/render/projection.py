"""Equirectangular projection into fixed map frames (contiguous US + two insets)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from covermap.models.coverage import Region
from covermap.utils.geometry import ring_array

CANVAS_W = 960
CANVAS_H = 620


@dataclass(frozen=True)
class GeoBounds:
    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float


@dataclass(frozen=True)
class Viewport:
    x: float
    y: float
    w: float
    h: float


@dataclass(frozen=True)
class MapFrame:
    bounds: GeoBounds
    viewport: Viewport
    # Caption drawn on inset frames
    label: str = ""


CONTIGUOUS = MapFrame(
    GeoBounds(min_lon=-125, max_lon=-66, min_lat=24.3, max_lat=49.5),
    Viewport(0, 0, CANVAS_W, CANVAS_H * 0.82),
)
ALASKA = MapFrame(
    GeoBounds(min_lon=-190, max_lon=-130, min_lat=51, max_lat=72),
    Viewport(10, CANVAS_H * 0.68, CANVAS_W * 0.24, CANVAS_H * 0.28),
    label="Alaska",
)
HAWAII = MapFrame(
    GeoBounds(min_lon=-161, max_lon=-154, min_lat=18.5, max_lat=22.5),
    Viewport(CANVAS_W * 0.26, CANVAS_H * 0.80, CANVAS_W * 0.12, CANVAS_H * 0.16),
    label="Hawaii",
)

# Keyed by FIPS code
INSET_FRAMES = {"02": ALASKA, "15": HAWAII}


def frame_for(region: Region) -> MapFrame:
    return INSET_FRAMES.get(region.code, CONTIGUOUS)


def project(lon: float, lat: float, frame: MapFrame) -> tuple[float, float]:
    b, vp = frame.bounds, frame.viewport
    x = vp.x + (lon - b.min_lon) / (b.max_lon - b.min_lon) * vp.w
    y = vp.y + (1 - (lat - b.min_lat) / (b.max_lat - b.min_lat)) * vp.h
    return (x, y)


def project_ring(ring: Sequence[Sequence[float]], frame: MapFrame) -> np.ndarray:
    """Vectorized ``project`` over one ring; returns an Nx2 array of screen points."""
    pts = ring_array(ring)
    b, vp = frame.bounds, frame.viewport
    xs = vp.x + (pts[:, 0] - b.min_lon) / (b.max_lon - b.min_lon) * vp.w
    ys = vp.y + (1 - (pts[:, 1] - b.min_lat) / (b.max_lat - b.min_lat)) * vp.h
    return np.column_stack([xs, ys])


def rings_to_path(rings: Sequence[Sequence[Sequence[float]]], frame: MapFrame) -> str:
    """SVG path data, one closed subpath per ring. Rings under 3 vertices are dropped."""
    parts: list[str] = []
    for ring in rings:
        if len(ring) < 3:
            continue
        pts = project_ring(ring, frame)
        parts.append("M" + "L".join(f"{x:.1f},{y:.1f}" for x, y in pts) + "Z")
    return "".join(parts)
