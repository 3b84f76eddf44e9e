"""
shadow.py — Outer shadow offset, blur and color.
"""
from __future__ import annotations

import math
from typing import Any

from deckmodel.core.ooxml.tree import XmlNode
from deckmodel.core.resolve.context import RelScope, SlideContext
from deckmodel.core.resolve.fill import resolve_solid
from deckmodel.core.resolve.geometry import PRECISION, angle_to_degrees


def resolve_shadow(outer_shdw: XmlNode | None, ctx: SlideContext, level: RelScope = RelScope.SLIDE) -> dict[str, Any] | None:
    if outer_shdw is None:
        return None
    attrs = outer_shdw.attrs
    direction = math.radians(angle_to_degrees(attrs.get("dir")))
    dist = ctx.scale(attrs.get("dist") or 0)
    blur = ctx.scale(attrs.get("blurRad") or 0)
    color = resolve_solid(outer_shdw, ctx.color_map_for(level), None, ctx)
    return {
        "h": round(dist * math.cos(direction), PRECISION),
        "v": round(dist * math.sin(direction), PRECISION),
        "blur": round(blur, PRECISION),
        "color": f"#{color}",
    }
