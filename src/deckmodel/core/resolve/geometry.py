"""
geometry.py — Position/size/rotation resolution and group coordinate remapping.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from deckmodel.core.errors import GroupTransformError
from deckmodel.core.ooxml.tree import XmlNode, get_path

SP_XFRM = ["p:spPr", "a:xfrm"]
GRP_XFRM = ["p:grpSpPr", "a:xfrm"]
FRAME_XFRM = ["p:xfrm"]

PRECISION = 2


def compact(value: float) -> int | float:
    """Drop a zero fractional part so 24.0 serializes as 24."""
    return int(value) if float(value).is_integer() else value


def angle_to_degrees(rot: Any) -> float:
    """60000ths of a degree to degrees; absent or malformed values are 0."""
    if rot is None or rot == "":
        return 0
    try:
        return round(int(rot) / 60000, PRECISION)
    except ValueError:
        return 0


@dataclass(frozen=True)
class Geometry:
    left: float
    top: float
    width: float
    height: float
    rotate: float = 0
    flip_h: bool = False
    flip_v: bool = False

    def box(self) -> dict[str, float]:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}


def _first_with(tag: str, candidates: list[XmlNode | None]) -> XmlNode | None:
    for xfrm in candidates:
        if xfrm is not None and tag in xfrm:
            return xfrm.first(tag)
    return None


def resolve_geometry(
    xfrm: XmlNode | None,
    scale: Callable[[Any], float],
    layout_xfrm: XmlNode | None = None,
    master_xfrm: XmlNode | None = None,
) -> Geometry | None:
    """Geometry from the node's own transform, else layout's, else master's.

    Offset and extent fall back independently. Rotation and flips are only
    ever read from the node's own transform. None when no level supplies
    an offset or an extent.
    """
    candidates = [xfrm, layout_xfrm, master_xfrm]
    off = _first_with("a:off", candidates)
    ext = _first_with("a:ext", candidates)
    if off is None or ext is None:
        return None
    try:
        left = scale(off.attrs.get("x", 0))
        top = scale(off.attrs.get("y", 0))
        width = scale(ext.attrs.get("cx", 0))
        height = scale(ext.attrs.get("cy", 0))
    except ValueError:
        return None
    own = xfrm.attrs if xfrm is not None else {}
    return Geometry(
        left=round(left, PRECISION),
        top=round(top, PRECISION),
        width=round(max(width, 0.0), PRECISION),
        height=round(max(height, 0.0), PRECISION),
        rotate=angle_to_degrees(own.get("rot")),
        flip_h=own.get("flipH") == "1",
        flip_v=own.get("flipV") == "1",
    )


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GroupTransform:
    """Maps child-space coordinates into the group's placed box."""

    geometry: Geometry
    ch_x: float
    ch_y: float
    ws: float
    hs: float

    def apply(self, element: dict[str, Any]) -> dict[str, Any]:
        out = dict(element)
        out["left"] = round((element["left"] - self.ch_x) * self.ws, PRECISION)
        out["top"] = round((element["top"] - self.ch_y) * self.hs, PRECISION)
        out["width"] = round(element["width"] * self.ws, PRECISION)
        out["height"] = round(element["height"] * self.hs, PRECISION)
        return out


def _axis_scale(placed: float, child: float) -> float:
    """Placed over child extent; a collapsed axis (both zero) keeps scale 1."""
    if child == 0:
        if placed == 0:
            return 1.0
        raise GroupTransformError(f"group child extent is zero but placed extent is {placed}")
    return placed / child


def group_transform(xfrm: XmlNode | None, scale: Callable[[Any], float]) -> GroupTransform | None:
    """None when the group has no transform; GroupTransformError when a zero
    child extent has to map onto a non-zero placed extent."""
    geometry = resolve_geometry(xfrm, scale)
    if geometry is None:
        return None
    ch_off = get_path(xfrm, ["a:chOff", "attrs"]) or {}
    ch_ext = get_path(xfrm, ["a:chExt", "attrs"]) or {}
    ext = get_path(xfrm, ["a:ext", "attrs"]) or {}
    return GroupTransform(
        geometry=geometry,
        ch_x=scale(ch_off.get("x", 0)),
        ch_y=scale(ch_off.get("y", 0)),
        ws=_axis_scale(scale(ext.get("cx", 0)), scale(ch_ext.get("cx", 0))),
        hs=_axis_scale(scale(ext.get("cy", 0)), scale(ch_ext.get("cy", 0))),
    )
