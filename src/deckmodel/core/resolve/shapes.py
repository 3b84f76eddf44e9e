"""
shapes.py — Shape, connector and picture entries of a shape tree.

Shapes inherit geometry from their layout/master placeholder counterparts and
become either a `shape` element (preset or custom geometry) or a `text`
element. Pictures become `image`, `video` or `audio` elements depending on the
media reference in their non-visual properties.
"""
from __future__ import annotations

import html
import logging
import re
from typing import Any

from deckmodel.core.ooxml.tree import XmlNode, get_path
from deckmodel.core.render.align import vertical_align
from deckmodel.core.render.border import resolve_border
from deckmodel.core.render.custom_geometry import custom_shape_path
from deckmodel.core.render.shadow import resolve_shadow
from deckmodel.core.render.text_body import render_text_body
from deckmodel.core.resolve.context import (
    RelScope,
    SlideContext,
    Source,
    file_extension,
    placeholder_attrs,
    scope_for,
)
from deckmodel.core.resolve.fill import embed_resource, shape_fill_color
from deckmodel.core.resolve.geometry import SP_XFRM, Geometry, angle_to_degrees, resolve_geometry

log = logging.getLogger("deckmodel")

VIDEO_EXTENSIONS = ("mp4", "webm", "ogg")
AUDIO_EXTENSIONS = ("mp3", "wav", "ogg")

_URL_RE = re.compile(r"^(https?|ftp)://", re.IGNORECASE)

# Color maps follow the part a node was declared in; diagram drawings belong to the slide.
_LEVEL_BY_SOURCE: dict[Source, RelScope] = {
    Source.SLIDE: RelScope.SLIDE,
    Source.LAYOUT_BG: RelScope.LAYOUT,
    Source.MASTER_BG: RelScope.MASTER,
    Source.DIAGRAM_BG: RelScope.SLIDE,
}


def color_level(source: Source) -> RelScope:
    return _LEVEL_BY_SOURCE[source]


def inherited_nodes(ph: dict[str, str], ctx: SlideContext) -> tuple[XmlNode | None, XmlNode | None]:
    """Layout and master counterparts of a placeholder (type wins over idx)."""
    ph_type, idx = ph.get("type"), ph.get("idx")
    if ph_type:
        return ctx.layout_tables.by_type.get(ph_type), ctx.master_tables.by_type.get(ph_type)
    if idx:
        return ctx.layout_tables.by_idx.get(idx), ctx.master_tables.by_idx.get(idx)
    return None, None


def real_path(path: str | None, ctx: SlideContext) -> str | None:
    """Where a consumer caching media on disk would keep `path`."""
    if not path:
        return None
    return ctx.options.media_cache_dir + path.replace("ppt/media", "", 1)


# ---------------------------------------------------------------------------
# Shapes and connectors
# ---------------------------------------------------------------------------


def resolve_shape(node: XmlNode, ctx: SlideContext, source: Source) -> dict[str, Any] | None:
    nv = node.first("p:nvSpPr")
    name = get_path(nv, ["p:cNvPr", "attrs", "name"])
    ph = get_path(nv, ["p:nvPr", "p:ph", "attrs"]) or {}
    layout_node, master_node = inherited_nodes(ph, ctx)

    ph_type = ph.get("type")
    if not ph_type and get_path(nv, ["p:cNvSpPr", "attrs", "txBox"]) == "1":
        ph_type = "text"
    if not ph_type:
        ph_type = placeholder_attrs(layout_node).get("type")
    if not ph_type:
        ph_type = placeholder_attrs(master_node).get("type")
    if not ph_type:
        ph_type = "diagram" if source is Source.DIAGRAM_BG else "obj"

    return build_shape(node, layout_node, master_node, name, ph_type, ctx, source)


def resolve_connector(node: XmlNode, ctx: SlideContext, source: Source) -> dict[str, Any] | None:
    name = get_path(node, ["p:nvCxnSpPr", "p:cNvPr", "attrs", "name"])
    return build_shape(node, None, None, name, None, ctx, source)


def build_shape(
    node: XmlNode,
    layout_node: XmlNode | None,
    master_node: XmlNode | None,
    name: str | None,
    ph_type: str | None,
    ctx: SlideContext,
    source: Source,
) -> dict[str, Any] | None:
    xfrm = get_path(node, SP_XFRM)
    geometry = resolve_geometry(xfrm, ctx.scale, get_path(layout_node, SP_XFRM), get_path(master_node, SP_XFRM))
    if geometry is None:
        log.debug("shape %r has no resolvable geometry; skipped", name)
        return None
    level = color_level(source)

    border = resolve_border(node, ctx, level)
    data: dict[str, Any] = {
        **geometry.box(),
        "borderColor": border["borderColor"],
        "borderWidth": border["borderWidth"],
        "borderType": border["borderType"],
        "borderStrokeDasharray": border["strokeDasharray"],
        "fillColor": shape_fill_color(node, ctx, level),
        "content": render_text_body(node.first("p:txBody"), ctx, layout_node=layout_node, level=level),
        "isFlipV": geometry.flip_v,
        "isFlipH": geometry.flip_h,
        "rotate": geometry.rotate,
        "vAlign": vertical_align(node, layout_node, master_node),
        "name": name or "",
    }
    shadow = resolve_shadow(get_path(node, ["p:spPr", "a:effectLst", "a:outerShdw"]), ctx, level)
    if shadow is not None:
        data["shadow"] = shadow

    shap_type = get_path(node, ["p:spPr", "a:prstGeom", "attrs", "prst"])
    cust_geom = get_path(node, ["p:spPr", "a:custGeom"])
    if cust_geom is not None and ph_type != "diagram":
        path = custom_shape_path(cust_geom, geometry.width, geometry.height, ctx.options.length_scale)
        return {"type": "shape", **data, "shapType": "custom", "path": path}
    if shap_type and ph_type in ("obj", None):
        return {"type": "shape", **data, "shapType": shap_type}

    text: dict[str, Any] = {"type": "text", **data}
    if shap_type:
        text["shapType"] = shap_type
    text["isVertical"] = get_path(node, ["p:txBody", "a:bodyPr", "attrs", "vert"]) == "eaVert"
    text["rotate"] = _text_rotation(node, geometry)
    return text


def _text_rotation(node: XmlNode, geometry: Geometry) -> float:
    tx_xfrm = node.first("p:txXfrm")
    if tx_xfrm is None:
        return geometry.rotate
    rot = tx_xfrm.attrs.get("rot")
    if rot:
        return angle_to_degrees(rot) + 90
    return geometry.rotate


# ---------------------------------------------------------------------------
# Pictures and media
# ---------------------------------------------------------------------------


def _is_url(target: str) -> bool:
    return bool(_URL_RE.match(target))


def resolve_picture(node: XmlNode, ctx: SlideContext, source: Source) -> dict[str, Any] | None:
    scope = scope_for(source)
    nv = node.first("p:nvPicPr")
    name = get_path(nv, ["p:cNvPr", "attrs", "name"])
    layout_node, master_node = inherited_nodes(get_path(nv, ["p:nvPr", "p:ph", "attrs"]) or {}, ctx)
    geometry = resolve_geometry(
        get_path(node, SP_XFRM),
        ctx.scale,
        get_path(layout_node, SP_XFRM),
        get_path(master_node, SP_XFRM),
    )
    if geometry is None:
        log.debug("picture %r has no resolvable geometry; skipped", name)
        return None
    base = {**geometry.box(), "rotate": geometry.rotate}

    video = get_path(nv, ["p:nvPr", "a:videoFile"])
    if video is not None:
        return _video(video, base, ctx, scope, name)
    audio = get_path(nv, ["p:nvPr", "a:audioFile"])
    if audio is not None:
        return _audio(audio, base, ctx, scope, name)

    rid = get_path(node, ["p:blipFill", "a:blip", "attrs", "r:embed"])
    ref = ctx.resource(scope, rid)
    src = None
    if ref is None:
        log.warning("picture %r: relationship %r not found in %s scope", name, rid, scope.value)
    elif ref.external:
        src = ref.target
    else:
        src = embed_resource(ref.target, ctx)
    return {
        "type": "image",
        **base,
        "src": src,
        "realPath": real_path(ref.target if ref is not None and not ref.external else None, ctx),
        "isFlipV": geometry.flip_v,
        "isFlipH": geometry.flip_h,
    }


def _video(video: XmlNode, base: dict[str, Any], ctx: SlideContext, scope: RelScope, name: str | None) -> dict[str, Any]:
    rid = video.attrs.get("r:link")
    ref = ctx.resource(scope, rid)
    if ref is None:
        log.warning("video %r: relationship %r not found in %s scope", name, rid, scope.value)
        return {"type": "video", **base, "blob": None, "realPath": None}
    if ref.external or _is_url(ref.target):
        return {"type": "video", **base, "src": html.escape(ref.target), "realPath": None}
    ext = file_extension(ref.target)
    if ext not in VIDEO_EXTENSIONS:
        log.warning("video %r: unsupported extension %r, payload left empty", name, ext)
        return {"type": "video", **base, "blob": None, "realPath": None}
    blob = embed_resource(ref.target, ctx, mime_type="video/ogg" if ext == "ogg" else None)
    return {"type": "video", **base, "blob": blob, "realPath": real_path(ref.target, ctx)}


def _audio(audio: XmlNode, base: dict[str, Any], ctx: SlideContext, scope: RelScope, name: str | None) -> dict[str, Any]:
    rid = audio.attrs.get("r:link")
    ref = ctx.resource(scope, rid)
    if ref is None or ref.external:
        log.warning("audio %r: no embedded target for relationship %r", name, rid)
        return {"type": "audio", **base, "blob": None, "realPath": None}
    ext = file_extension(ref.target)
    if ext not in AUDIO_EXTENSIONS:
        log.warning("audio %r: unsupported extension %r, payload left empty", name, ext)
        return {"type": "audio", **base, "blob": None, "realPath": None}
    return {"type": "audio", **base, "blob": embed_resource(ref.target, ctx), "realPath": real_path(ref.target, ctx)}
