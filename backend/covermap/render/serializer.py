"""Write SVG markup from element definitions."""

from __future__ import annotations

from typing import Any
from xml.sax.saxutils import escape, quoteattr

_RESERVED = ("tag", "children", "text")


def _attrs(elem: dict[str, Any]) -> str:
    return " ".join(f"{k}={quoteattr(str(v))}" for k, v in elem.items() if k not in _RESERVED)


def _element_lines(elem: dict[str, Any], indent: str) -> list[str]:
    tag = elem.get("tag", "path")
    attr_str = _attrs(elem)
    open_tag = f"<{tag} {attr_str}" if attr_str else f"<{tag}"
    children = elem.get("children") or []
    text = elem.get("text")

    if not children and text is None:
        return [f"{indent}{open_tag} />"]
    if not children:
        return [f"{indent}{open_tag}>{escape(str(text))}</{tag}>"]

    lines = [f"{indent}{open_tag}>"]
    for child in children:
        lines.extend(_element_lines(child, indent + "  "))
    lines.append(f"{indent}</{tag}>")
    return lines


def serialize_svg(
    elements: list[dict[str, Any]],
    canvas_w: float = 960.0,
    canvas_h: float = 620.0,
    title: str = "",
    description: str = "",
    styles: dict[str, str] | None = None,
    root_attrs: dict[str, str] | None = None,
) -> str:
    """Generate SVG markup. Elements nest via ``children``; ``text`` becomes escaped content."""
    extra = "".join(f" {k}={quoteattr(v)}" for k, v in (root_attrs or {}).items())
    lines = [
        f'<svg viewBox="0 0 {canvas_w} {canvas_h}" xmlns="http://www.w3.org/2000/svg"'
        f' role="img"{extra}>',
    ]

    if title:
        lines.append(f"  <title>{escape(title)}</title>")
    if description:
        lines.append(f"  <desc>{escape(description)}</desc>")

    if styles:
        lines.append("  <style>")
        for selector, props in styles.items():
            lines.append(f"    {selector} {{ {props} }}")
        lines.append("  </style>")

    for elem in elements:
        lines.extend(_element_lines(elem, "  "))

    lines.append("</svg>")
    return "\n".join(lines)
