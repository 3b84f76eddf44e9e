"""
fill.py — Fill classification, solid-color resolution and slide backgrounds.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Mapping

from deckmodel.core.errors import PartNotFoundError
from deckmodel.core.ooxml.tree import XmlNode, get_path
from deckmodel.core.resolve import color as clr
from deckmodel.core.resolve.context import RelScope, SlideContext, file_extension, part_root
from deckmodel.core.resolve.geometry import angle_to_degrees, compact

log = logging.getLogger("deckmodel")

DEFAULT_BACKGROUND: dict[str, Any] = {"type": "color", "value": "#fff"}


class FillType(Enum):
    NONE = "a:noFill"
    SOLID = "a:solidFill"
    GRADIENT = "a:gradFill"
    PATTERN = "a:pattFill"
    PICTURE = "a:blipFill"
    GROUP = "a:grpFill"


def classify_fill(node: XmlNode | None) -> FillType | None:
    """First fill child present, in NONE..GROUP priority order."""
    if node is None:
        return None
    for kind in FillType:
        if kind.value in node:
            return kind
    return None


# ---------------------------------------------------------------------------
# Solid colors
# ---------------------------------------------------------------------------


def _fraction(node: XmlNode | None, tag: str) -> float | None:
    """`val` of a modifier child divided by 100000; None if absent or unparseable."""
    raw = get_path(node, [tag, "attrs", "val"])
    if raw is None:
        return None
    try:
        return int(raw) / 100000
    except ValueError:
        return None


def _percent(raw: str | None) -> float:
    """ST_Percentage as a 0..1 fraction; accepts both "50%" and "50000"."""
    if not raw:
        return 0.0
    if raw.endswith("%"):
        return float(raw[:-1]) / 100
    return int(raw) / 100000


def _scheme_color(node: XmlNode, color_map: Mapping[str, str] | None, ph_clr: str | None, ctx: SlideContext) -> str:
    name = node.attrs.get("val")
    if name == "phClr" and ph_clr:
        base = ph_clr
    else:
        base = clr.scheme_color_from_theme(name, ctx.theme, color_map) or "FFFFFF"
    lum_mod = _fraction(node, "a:lumMod")
    lum_off = _fraction(node, "a:lumOff")
    return clr.scale_lightness(
        base,
        1.0 if lum_mod is None else lum_mod,
        0.0 if lum_off is None else lum_off,
    )


def _base_color(fill: XmlNode) -> tuple[str, XmlNode | None]:
    if "a:srgbClr" in fill:
        node = fill.first("a:srgbClr")
        return node.attrs.get("val", "FFFFFF"), node
    if "a:scrgbClr" in fill:
        node = fill.first("a:scrgbClr")
        r, g, b = (_percent(node.attrs.get(k)) for k in ("r", "g", "b"))
        return clr.to_hex(r, g, b), node
    if "a:prstClr" in fill:
        node = fill.first("a:prstClr")
        return node.attrs.get("val", "FFFFFF"), node
    if "a:hslClr" in fill:
        node = fill.first("a:hslClr")
        hue = int(node.attrs.get("hue", "0")) / 60000
        return clr.hsl_to_hex(hue, _percent(node.attrs.get("sat")), _percent(node.attrs.get("lum"))), node
    if "a:sysClr" in fill:
        node = fill.first("a:sysClr")
        return node.attrs.get("lastClr") or "FFFFFF", node
    return "FFFFFF", None


def resolve_solid(
    fill: XmlNode | None,
    color_map: Mapping[str, str] | None,
    ph_clr: str | None,
    ctx: SlideContext,
) -> str | None:
    """Hex color (no "#") described by a node holding one color child.

    `fill` is typically a:solidFill, but a:gs stops and style references
    (a:fillRef, a:lnRef) carry their color the same way.
    """
    if fill is None:
        return None
    scheme = fill.first("a:schemeClr")
    if scheme is not None and "a:srgbClr" not in fill:
        return _scheme_color(scheme, color_map, ph_clr, ctx)

    color, node = _base_color(fill)
    with_alpha = False
    alpha = _fraction(node, "a:alpha")
    if alpha is not None:
        color = clr.apply_alpha(color, alpha)
        with_alpha = True
    for tag, modifier in (
        ("a:hueMod", clr.apply_hue_mod),
        ("a:lumMod", clr.apply_lum_mod),
        ("a:lumOff", clr.apply_lum_off),
        ("a:satMod", clr.apply_sat_mod),
        ("a:shade", clr.apply_shade),
        ("a:tint", clr.apply_tint),
    ):
        value = _fraction(node, tag)
        if value is not None:
            color = modifier(color, value, with_alpha)
    return color


def shape_fill_color(node: XmlNode, ctx: SlideContext, level: RelScope = RelScope.SLIDE) -> str:
    """CSS color of a shape's fill, or "" when it has none we can express."""
    sp_pr = node.first("p:spPr")
    kind = classify_fill(sp_pr)
    if kind is FillType.NONE:
        return ""
    color_map = ctx.color_map_for(level)
    if kind is FillType.SOLID:
        return "#" + resolve_solid(sp_pr.first("a:solidFill"), color_map, None, ctx)
    if kind is not None:
        log.debug("shape fill %s not expressible as a color; left empty", kind.name)
        return ""
    fill_ref = get_path(node, ["p:style", "a:fillRef"])
    if fill_ref is not None and fill_ref.children():
        return "#" + resolve_solid(fill_ref, color_map, None, ctx)
    return ""


# ---------------------------------------------------------------------------
# Embedded media
# ---------------------------------------------------------------------------


def embed_resource(path: str, ctx: SlideContext, *, mime_type: str | None = None) -> Any:
    """Inline data URI for a media part, or the externalize callback's handle.

    None for XML targets and for parts missing from the package.
    """
    if file_extension(path) == "xml":
        return None
    try:
        media = ctx.read_media(path)
    except PartNotFoundError:
        log.warning("media part missing from package: %s", path)
        return None
    if mime_type is not None and mime_type != media.mime_type:
        media = replace(media, mime_type=mime_type)
    hook = ctx.options.externalize_resource
    if hook is not None:
        return ctx.cache.get_or_load("externalized:" + path, lambda: hook(media))
    return media.data_uri()


def picture_fill_source(blip_fill: XmlNode | None, scope: RelScope, ctx: SlideContext) -> Any:
    rid = get_path(blip_fill, ["a:blip", "attrs", "r:embed"])
    ref = ctx.resource(scope, rid)
    if ref is None:
        log.debug("picture fill rId %r unresolved in %s scope", rid, scope.value)
        return None
    if ref.external:
        return ref.target
    return embed_resource(ref.target, ctx)


# ---------------------------------------------------------------------------
# Backgrounds
# ---------------------------------------------------------------------------


def _stop_position(pos: str) -> float:
    try:
        return int(float(pos.rstrip("%")))
    except ValueError:
        return 0


def gradient_fill(grad: XmlNode, ctx: SlideContext, ph_clr: str | None = None) -> dict[str, Any]:
    """{rot, colors: [{pos, color}]} with stops ascending by position."""
    color_map = ctx.master_color_map()
    colors: list[dict[str, str]] = []
    gs_lst = grad.first("a:gsLst")
    for stop in gs_lst.all("a:gs") if gs_lst is not None else []:
        pos = stop.attrs.get("pos")
        colors.append(
            {
                "pos": f"{compact(int(pos) / 1000)}%" if pos else "",
                "color": "#" + resolve_solid(stop, color_map, ph_clr, ctx),
            }
        )
    colors.sort(key=lambda c: _stop_position(c["pos"]))
    rot: float = 90
    ang = get_path(grad, ["a:lin", "attrs", "ang"])
    if ang is not None:
        rot = angle_to_degrees(ang) + 90
    return {"rot": compact(rot), "colors": colors}


def _tile_value(attrs: Mapping[str, str], key: str) -> float | None:
    raw = attrs.get(key)
    if raw is None:
        return None
    try:
        return compact(int(raw) / 100000)
    except ValueError:
        return None


def picture_background(bg_pr: XmlNode, scope: RelScope, ctx: SlideContext) -> dict[str, Any]:
    blip_fill = bg_pr.first("a:blipFill")
    opacity: float = 1
    amt = get_path(blip_fill, ["a:blip", "a:alphaModFix", "attrs", "amt"])
    if amt:
        opacity = compact(int(amt) / 100000)
    tile = None
    tile_attrs = get_path(blip_fill, ["a:tile", "attrs"])
    if tile_attrs is not None:
        tile = {
            "flip": tile_attrs.get("flip"),
            "algn": tile_attrs.get("algn"),
            **{k: _tile_value(tile_attrs, k) for k in ("tx", "ty", "sx", "sy")},
        }
    return {"src": picture_fill_source(blip_fill, scope, ctx), "opacity": opacity, "tile": tile}


def _background_at(doc: XmlNode | None) -> XmlNode | None:
    return get_path(part_root(doc), ["p:cSld", "p:bg", "p:bgPr"])


def slide_background_fill(ctx: SlideContext) -> dict[str, Any]:
    """{type: color|gradient|image, value} from the first level defining p:bgPr."""
    for level, doc in ((RelScope.SLIDE, ctx.slide), (RelScope.LAYOUT, ctx.layout), (RelScope.MASTER, ctx.master)):
        bg_pr = _background_at(doc)
        if bg_pr is None:
            continue
        kind = classify_fill(bg_pr)
        if kind is FillType.SOLID:
            color = resolve_solid(bg_pr.first("a:solidFill"), ctx.color_map_for(level), None, ctx)
            return {"type": "color", "value": "#" + color}
        if kind is FillType.GRADIENT:
            return {"type": "gradient", "value": gradient_fill(bg_pr.first("a:gradFill"), ctx)}
        if kind is FillType.PICTURE:
            return {"type": "image", "value": picture_background(bg_pr, level, ctx)}
        log.debug("%s background fill %s left at default", level.value, kind.name if kind else "absent")
        return dict(DEFAULT_BACKGROUND)
    return dict(DEFAULT_BACKGROUND)
