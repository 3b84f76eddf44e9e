"""
border.py — Outline color, width and dash style of a shape.
"""
from __future__ import annotations

from typing import Any

from deckmodel.core.ooxml.tree import XmlNode, get_path
from deckmodel.core.resolve.context import RelScope, SlideContext
from deckmodel.core.resolve.fill import resolve_solid
from deckmodel.core.resolve.geometry import compact

EMU_PER_PT = 12700

# prstDash value -> (borderType, strokeDasharray)
_DASHES: dict[str, tuple[str, str]] = {
    "solid": ("solid", "0"),
    "dash": ("dashed", "5"),
    "sysDash": ("dashed", "3, 1"),
    "lgDash": ("dashed", "10"),
    "dashDot": ("dashed", "5, 5, 1, 5"),
    "sysDashDot": ("dashed", "3, 1, 1, 1"),
    "lgDashDot": ("dashed", "10, 5, 1, 5"),
    "lgDashDotDot": ("dashed", "10, 5, 1, 5, 1, 5"),
    "sysDashDotDot": ("dashed", "3, 1, 1, 1, 1, 1"),
    "sysDot": ("dotted", "1, 1"),
    "dot": ("dotted", "1, 5"),
}


def resolve_border(node: XmlNode, ctx: SlideContext, level: RelScope = RelScope.SLIDE) -> dict[str, Any]:
    """{borderColor, borderWidth, borderType, strokeDasharray} for a shape or connector."""
    ln = get_path(node, ["p:spPr", "a:ln"])
    if ln is not None and "a:noFill" in ln:
        return {"borderColor": "", "borderWidth": 0, "borderType": "solid", "strokeDasharray": "0"}

    width: float = 0
    w = get_path(ln, ["attrs", "w"])
    if w and w.isdigit():
        width = compact(round(int(w) / EMU_PER_PT, 2))

    color_map = ctx.color_map_for(level)
    color = None
    solid = get_path(ln, ["a:solidFill"])
    if solid is not None:
        color = resolve_solid(solid, color_map, None, ctx)
    if color is None:
        ln_ref = get_path(node, ["p:style", "a:lnRef"])
        if ln_ref is not None and ln_ref.children():
            color = resolve_solid(ln_ref, color_map, None, ctx)
            if ln is None and ln_ref.attrs.get("idx", "0") != "0" and not width:
                width = 1

    dash = get_path(ln, ["a:prstDash", "attrs", "val"]) or "solid"
    border_type, dasharray = _DASHES.get(dash, ("solid", "0"))
    return {
        "borderColor": f"#{color}" if color else "#000",
        "borderWidth": width,
        "borderType": border_type,
        "strokeDasharray": dasharray,
    }
