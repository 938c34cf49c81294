"""Choropleth rendering of a coverage batch."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from covermap.models.coverage import BatchResult, CoverageSummary, IntersectionResult
from covermap.render.projection import ALASKA, CANVAS_H, CANVAS_W, HAWAII, frame_for, project, rings_to_path
from covermap.render.serializer import serialize_svg
from covermap.utils.geometry import label_point

NEUTRAL_FILL = "rgba(255,255,255,0.12)"
DATA_STROKE = "rgba(91,163,245,0.6)"
NEUTRAL_STROKE = "rgba(255,255,255,0.3)"
INSET_STROKE = "rgba(255,255,255,0.18)"

MAP_STYLES = {
    ".cov-count": "font: 600 11px sans-serif; fill: #fff; text-anchor: middle",
    ".cov-abbr": "font: 9px sans-serif; fill: rgba(255,255,255,0.7); text-anchor: middle",
    ".cov-inset-label": "font: 10px sans-serif; fill: rgba(255,255,255,0.5)",
}


@dataclass(frozen=True)
class CoverageMap:
    svg: str
    summary: CoverageSummary


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def color_scale_position(count: int, max_count: int) -> float:
    """t in [0, 1] on a log scale, so a few huge counts don't flatten the rest."""
    return min(1.0, math.log(count + 1) / math.log(max_count + 1))


def region_fill(count: int, max_count: int) -> str:
    """Light blue -> deep blue ramp; zero and failed regions share a neutral fill."""
    if count <= 0:
        return NEUTRAL_FILL
    t = color_scale_position(count, max_count)
    r = _round_half_up(30 + (1 - t) * 40)
    g = _round_half_up(80 + (1 - t) * 80)
    b = _round_half_up(140 + t * 115)
    a = 0.5 + t * 0.45
    return f"rgba({r},{g},{b},{a:.2f})"


def _fixed(value: float, places: int) -> str:
    """``value`` rounded half-up to ``places`` decimals."""
    return str(Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def format_count(count: int) -> str:
    if count >= 10000:
        return f"{_fixed(count / 1000, 0)}k"
    if count >= 1000:
        return f"{_fixed(count / 1000, 1)}k"
    return str(count)


def _tooltip(result: IntersectionResult) -> str:
    if result.failed:
        return f"{result.region.name}: query failed"
    return f"{result.region.name}: {result.count:,} features"


def _region_elements(
    result: IntersectionResult, max_count: int,
) -> tuple[dict[str, Any] | None, list[dict[str, Any]]]:
    region = result.region
    frame = frame_for(region)
    d = rings_to_path(region.rings, frame)
    if not d:
        return None, []

    path = {
        "tag": "path",
        "d": d,
        "fill": region_fill(result.count, max_count),
        "stroke": DATA_STROKE if result.has_data else NEUTRAL_STROKE,
        "stroke-width": "0.8",
        "fill-rule": "evenodd",
        "data-state": region.abbreviation,
        "data-count": str(result.count),
        "children": [{"tag": "title", "text": _tooltip(result)}],
    }

    labels: list[dict[str, Any]] = []
    if result.has_data:
        lon, lat = label_point(region.rings)
        sx, sy = project(lon, lat, frame)
        labels.append({
            "tag": "text", "x": _fixed(sx, 0), "y": _fixed(sy - 2, 0),
            "class": "cov-count", "text": format_count(result.count),
        })
        labels.append({
            "tag": "text", "x": _fixed(sx, 0), "y": _fixed(sy + 12, 0),
            "class": "cov-abbr", "text": region.abbreviation,
        })
    return path, labels


def _inset_elements() -> list[dict[str, Any]]:
    elements: list[dict[str, Any]] = []
    for frame in (ALASKA, HAWAII):
        vp = frame.viewport
        elements.append({
            "tag": "rect", "x": f"{vp.x:g}", "y": f"{vp.y:g}",
            "width": f"{vp.w:g}", "height": f"{vp.h:g}",
            "fill": "none", "stroke": INSET_STROKE, "stroke-width": "1", "rx": "6",
        })
        elements.append({
            "tag": "text", "x": f"{vp.x + 6:g}", "y": f"{vp.y + 14:g}",
            "class": "cov-inset-label", "text": frame.label,
        })
    return elements


def render_coverage(results: BatchResult) -> CoverageMap:
    """Draw a batch as an SVG choropleth and compute its summary.

    Pure function of ``results``: same input, byte-identical SVG.
    """
    max_count = max([r.count for r in results if r.count > 0], default=1)
    max_count = max(max_count, 1)

    paths: list[dict[str, Any]] = []
    labels: list[dict[str, Any]] = []
    for result in results:
        path, region_labels = _region_elements(result, max_count)
        if path is None:
            continue
        paths.append(path)
        labels.extend(region_labels)

    elements = [
        {"tag": "g", "class": "cov-regions", "children": paths},
        {"tag": "g", "class": "cov-labels", "children": labels},
        *_inset_elements(),
    ]
    svg = serialize_svg(
        elements,
        CANVAS_W,
        CANVAS_H,
        styles=MAP_STYLES,
        root_attrs={"class": "coverage-map-svg", "preserveAspectRatio": "xMidYMid meet"},
    )
    return CoverageMap(svg=svg, summary=CoverageSummary.from_results(results))
