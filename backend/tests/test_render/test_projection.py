"""Tests for map frames and projection."""

from __future__ import annotations

import numpy as np
import pytest

from covermap.models.coverage import Region
from covermap.render.projection import (
    ALASKA,
    CANVAS_W,
    CONTIGUOUS,
    HAWAII,
    frame_for,
    project,
    project_ring,
    rings_to_path,
)
from tests.conftest import CA, square


def test_frame_selection():
    assert frame_for(CA) is CONTIGUOUS
    assert frame_for(Region(code="02", name="Alaska", abbreviation="AK")) is ALASKA
    assert frame_for(Region(code="15", name="Hawaii", abbreviation="HI")) is HAWAII


def test_project_corners():
    b, vp = CONTIGUOUS.bounds, CONTIGUOUS.viewport
    assert project(b.min_lon, b.max_lat, CONTIGUOUS) == pytest.approx((0.0, 0.0))
    assert project(b.max_lon, b.min_lat, CONTIGUOUS) == pytest.approx((CANVAS_W, vp.h))


def test_project_inset_offset():
    b, vp = ALASKA.bounds, ALASKA.viewport
    assert project(b.min_lon, b.max_lat, ALASKA) == pytest.approx((vp.x, vp.y))


def test_project_ring_matches_project():
    ring = square(-100, 35, 3)
    pts = project_ring(ring, CONTIGUOUS)
    expected = np.array([project(lon, lat, CONTIGUOUS) for lon, lat in ring])
    assert np.allclose(pts, expected)


def test_rings_to_path():
    d = rings_to_path([square(-100, 35, 3), [(-90, 30), (-89, 30)]], CONTIGUOUS)
    assert d.startswith("M")
    assert d.count("M") == 1
    assert d.endswith("Z")
    assert d.count("L") == 4


def test_rings_to_path_empty():
    assert rings_to_path([], CONTIGUOUS) == ""
