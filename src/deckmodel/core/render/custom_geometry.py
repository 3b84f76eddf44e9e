"""
custom_geometry.py — a:custGeom path lists evaluated to SVG path data.

Commands are emitted in document order. Point coordinates are scaled from
the path's own coordinate space (a:path@w/@h) to the element's pixel size.
Guide names are resolved against the built-in shape guides only; formulas
from a:gdLst are not evaluated.
"""
from __future__ import annotations

import logging
import math

from deckmodel.core.ooxml.tree import XmlNode
from deckmodel.core.resolve.geometry import PRECISION, compact

log = logging.getLogger("deckmodel")


def _builtin_guides(w: float, h: float) -> dict[str, float]:
    return {
        "l": 0,
        "t": 0,
        "r": w,
        "b": h,
        "w": w,
        "h": h,
        "hc": w / 2,
        "vc": h / 2,
        "wd2": w / 2,
        "hd2": h / 2,
        "wd4": w / 4,
        "hd4": h / 4,
        "ss": min(w, h),
        "ls": max(w, h),
        "cd2": 10800000,
        "cd4": 5400000,
    }


def _fmt(value: float) -> str:
    return str(compact(round(value, PRECISION)))


class _PathWriter:
    def __init__(self, w: float, h: float, sx: float, sy: float) -> None:
        self.guides = _builtin_guides(w, h)
        self.sx = sx
        self.sy = sy
        self.x = 0.0
        self.y = 0.0
        self.out: list[str] = []

    def value(self, raw: str | None) -> float:
        if raw is None:
            return 0.0
        try:
            return float(raw)
        except ValueError:
            if raw not in self.guides:
                log.debug("custom geometry guide %r not supported; using 0", raw)
            return float(self.guides.get(raw, 0))

    def point(self, pt: XmlNode) -> tuple[float, float]:
        return self.value(pt.attrs.get("x")), self.value(pt.attrs.get("y"))

    def emit(self, cmd: str, *points: tuple[float, float]) -> None:
        coords = " ".join(f"{_fmt(x * self.sx)} {_fmt(y * self.sy)}" for x, y in points)
        self.out.append(f"{cmd} {coords}")
        if points:
            self.x, self.y = points[-1]

    def arc(self, node: XmlNode) -> None:
        wr = self.value(node.attrs.get("wR"))
        hr = self.value(node.attrs.get("hR"))
        st = math.radians(self.value(node.attrs.get("stAng")) / 60000)
        sw_deg = self.value(node.attrs.get("swAng")) / 60000
        sw = math.radians(sw_deg)
        cx = self.x - wr * math.cos(st)
        cy = self.y - hr * math.sin(st)
        ex = cx + wr * math.cos(st + sw)
        ey = cy + hr * math.sin(st + sw)
        large = 1 if abs(sw_deg) > 180 else 0
        sweep = 1 if sw_deg > 0 else 0
        self.out.append(
            f"A {_fmt(wr * self.sx)} {_fmt(hr * self.sy)} 0 {large} {sweep} {_fmt(ex * self.sx)} {_fmt(ey * self.sy)}"
        )
        self.x, self.y = ex, ey


def custom_shape_path(cust_geom: XmlNode | None, width: float, height: float, unit_scale: float = 1.0) -> str:
    """SVG path data for `cust_geom` drawn into a `width` x `height` box.

    `unit_scale` applies along an axis whose path omits its w/h, in which
    case coordinates are in archive length units.
    """
    path_lst = cust_geom.first("a:pathLst") if cust_geom is not None else None
    if path_lst is None:
        return ""
    commands: list[str] = []
    for path in path_lst.all("a:path"):
        pw = float(path.attrs.get("w") or 0)
        ph = float(path.attrs.get("h") or 0)
        sx = width / pw if pw else unit_scale
        sy = height / ph if ph else unit_scale
        writer = _PathWriter(pw or width / unit_scale, ph or height / unit_scale, sx, sy)
        for cmd in path.children():
            pts = [writer.point(pt) for pt in cmd.all("a:pt")]
            if cmd.tag == "a:moveTo" and pts:
                writer.emit("M", pts[0])
            elif cmd.tag == "a:lnTo" and pts:
                writer.emit("L", pts[0])
            elif cmd.tag == "a:cubicBezTo" and len(pts) == 3:
                writer.emit("C", *pts)
            elif cmd.tag == "a:quadBezTo" and len(pts) == 2:
                writer.emit("Q", *pts)
            elif cmd.tag == "a:arcTo":
                writer.arc(cmd)
            elif cmd.tag == "a:close":
                writer.out.append("Z")
        commands.extend(writer.out)
    return " ".join(commands)
