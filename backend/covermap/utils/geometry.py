"""Leaf-node ring geometry helpers. No engine imports.

Rings are sequences of (x, y) vertices; closing the ring (repeating the
first vertex) is optional, the last vertex always wraps to the first.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

# Fraction of the bbox kept clear on each side when placing a label
LABEL_INSET = 0.15


def ring_array(ring: Sequence[Sequence[float]]) -> NDArray[np.float64]:
    return np.asarray(ring, dtype=np.float64).reshape(-1, 2)


def signed_area(points: NDArray[np.float64]) -> float:
    """Shoelace formula for signed area. Positive = CCW, Negative = CW."""
    x = points[:, 0]
    y = points[:, 1]
    return float(0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def centroid(points: NDArray[np.float64]) -> tuple[float, float]:
    """Vertex average."""
    if len(points) == 0:
        return (0.0, 0.0)
    return (float(np.mean(points[:, 0])), float(np.mean(points[:, 1])))


def area_centroid(points: NDArray[np.float64]) -> tuple[float, float]:
    """Signed-area centroid; degenerate (zero-area) rings fall back to the vertex average."""
    x = points[:, 0]
    y = points[:, 1]
    x1 = np.roll(x, -1)
    y1 = np.roll(y, -1)
    cross = x * y1 - x1 * y
    twice_area = float(np.sum(cross))
    if abs(twice_area) <= 1e-10:
        return centroid(points)
    cx = float(np.sum((x + x1) * cross)) / (3 * twice_area)
    cy = float(np.sum((y + y1) * cross)) / (3 * twice_area)
    return (cx, cy)


def outer_ring(rings: Sequence[Sequence[Sequence[float]]]) -> NDArray[np.float64]:
    """Ring with the largest absolute area. Holes are always smaller than their shell."""
    best = ring_array(rings[0])
    best_area = 0.0
    for ring in rings:
        if len(ring) < 3:
            continue
        pts = ring_array(ring)
        a = abs(signed_area(pts))
        if a > best_area:
            best_area = a
            best = pts
    return best


def label_point(
    rings: Sequence[Sequence[Sequence[float]]],
    inset: float = LABEL_INSET,
) -> tuple[float, float]:
    """Interior-ish anchor for a region label.

    Area centroid of the outer ring, clamped into that ring's bbox shrunk by
    ``inset`` on each axis. For concave shapes the raw centroid can fall
    outside the region; the clamp keeps it off the edges.
    """
    if not rings:
        return (0.0, 0.0)
    pts = outer_ring(rings)
    if len(pts) == 0:
        return (0.0, 0.0)

    cx, cy = area_centroid(pts)
    xmin, ymin, xmax, ymax = bbox(pts)
    pad_x = (xmax - xmin) * inset
    pad_y = (ymax - ymin) * inset
    cx = max(xmin + pad_x, min(xmax - pad_x, cx))
    cy = max(ymin + pad_y, min(ymax - pad_y, cy))
    return (cx, cy)
