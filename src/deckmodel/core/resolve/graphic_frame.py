"""
graphic_frame.py — Table, chart and diagram content of p:graphicFrame.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from deckmodel.core.errors import PartNotFoundError
from deckmodel.core.ooxml.tree import XmlNode, as_list, get_path
from deckmodel.core.render.chart_data import extract_chart
from deckmodel.core.render.text_body import render_text_body
from deckmodel.core.resolve.context import RelScope, SlideContext, Source, scope_for
from deckmodel.core.resolve.fill import resolve_solid
from deckmodel.core.resolve.geometry import FRAME_XFRM, Geometry, resolve_geometry
from deckmodel.core.resolve.shapes import resolve_shape

log = logging.getLogger("deckmodel")

TABLE_URI = "http://schemas.openxmlformats.org/drawingml/2006/table"
CHART_URI = "http://schemas.openxmlformats.org/drawingml/2006/chart"
DIAGRAM_URI = "http://schemas.openxmlformats.org/drawingml/2006/diagram"
OLE_URI = "http://schemas.openxmlformats.org/presentationml/2006/ole"

_GRAPHIC_DATA = ["a:graphic", "a:graphicData"]

# Cell attribute -> output key; values are passed through as strings.
_CELL_SPANS = (("rowSpan", "rowSpan"), ("gridSpan", "colSpan"), ("vMerge", "vMerge"), ("hMerge", "hMerge"))


def graphic_data_uri(node: XmlNode) -> str | None:
    return get_path(node, [*_GRAPHIC_DATA, "attrs", "uri"])


def _frame_geometry(node: XmlNode, ctx: SlideContext, kind: str) -> Geometry | None:
    geometry = resolve_geometry(get_path(node, FRAME_XFRM), ctx.scale)
    if geometry is None:
        name = get_path(node, ["p:nvGraphicFramePr", "p:cNvPr", "attrs", "name"])
        log.debug("%s frame %r has no geometry; skipped", kind, name)
    return geometry


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _table_style(style_id: str, ctx: SlideContext) -> XmlNode | None:
    lst = get_path(ctx.table_styles, ["a:tblStyleLst"])
    if lst is None:
        return None
    for style in lst.all("a:tblStyle"):
        if style.attrs.get("styleId") == style_id:
            return style
    return None


def table_theme_color(style_id: str | None, ctx: SlideContext) -> str:
    """Background color of a table style: tblBg fill reference, else wholeTbl solid fill."""
    if not style_id:
        return ""
    style = _table_style(style_id, ctx)
    if style is None:
        log.debug("table style %s not in table style catalog", style_id)
        return ""
    color_map = ctx.color_map_for(RelScope.SLIDE)
    fill = get_path(style, ["a:tblBg", "a:fillRef"])
    if fill is None:
        fill = get_path(style, ["a:wholeTbl", "a:tcStyle", "a:fill", "a:solidFill"])
    color = resolve_solid(fill, color_map, None, ctx)
    return f"#{color}" if color else ""


def _table_cell(tc: XmlNode, ctx: SlideContext) -> dict[str, Any]:
    cell: dict[str, Any] = {"text": render_text_body(tc.first("a:txBody"), ctx)}
    for attr, key in _CELL_SPANS:
        if attr in tc.attrs:
            cell[key] = tc.attrs[attr]
    return cell


def resolve_table(node: XmlNode, ctx: SlideContext, source: Source) -> dict[str, Any] | None:
    geometry = _frame_geometry(node, ctx, "table")
    if geometry is None:
        return None
    tbl = get_path(node, [*_GRAPHIC_DATA, "a:tbl"])
    style_id = get_path(tbl, ["a:tblPr", "a:tableStyleId"])
    data = [[_table_cell(tc, ctx) for tc in tr.all("a:tc")] for tr in (tbl.all("a:tr") if tbl is not None else [])]
    return {
        "type": "table",
        **geometry.box(),
        "rotate": geometry.rotate,
        "data": data,
        "themeColor": table_theme_color(style_id.text if style_id is not None else None, ctx),
    }


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------

_CHART_OPTIONAL = ("marker", "barDir", "holeSize", "grouping", "style")


def resolve_chart(node: XmlNode, ctx: SlideContext, source: Source) -> dict[str, Any] | None:
    geometry = _frame_geometry(node, ctx, "chart")
    if geometry is None:
        return None
    rid = get_path(node, [*_GRAPHIC_DATA, "c:chart", "attrs", "r:id"])
    ref = ctx.resource(scope_for(source), rid)
    if ref is None or ref.external:
        log.warning("chart relationship %r has no embedded part", rid)
        return None
    try:
        chart_doc = ctx.package.read_xml(ref.target)
    except PartNotFoundError:
        log.warning("chart part missing from package: %s", ref.target)
        return None
    chart = extract_chart(get_path(chart_doc, ["c:chartSpace", "c:chart", "c:plotArea"]))
    if chart is None:
        return None
    out: dict[str, Any] = {
        "type": "chart",
        **geometry.box(),
        "rotate": geometry.rotate,
        "data": chart["data"],
        "chartType": chart["type"],
    }
    for key in _CHART_OPTIONAL:
        if key in chart:
            out[key] = chart[key]
    return out


# ---------------------------------------------------------------------------
# Diagrams
# ---------------------------------------------------------------------------


def _frame_drawing_path(node: XmlNode, ctx: SlideContext, source: Source) -> str | None:
    """Drawing part of this frame: r:dm data part -> dsp:dataModelExt@relId."""
    scope = scope_for(source)
    dm = get_path(node, [*_GRAPHIC_DATA, "dgm:relIds", "attrs", "r:dm"])
    data_ref = ctx.resource(scope, dm)
    if data_ref is None or data_ref.external:
        return None
    data = ctx.package.read_xml_optional(data_ref.target)
    for ext in as_list(get_path(data, ["dgm:dataModel", "dgm:extLst", "a:ext"])):
        drawing_ref = ctx.resource(scope, get_path(ext, ["dsp:dataModelExt", "attrs", "relId"]))
        if drawing_ref is not None and not drawing_ref.external and ctx.package.has(drawing_ref.target):
            return drawing_ref.target
    return None


def resolve_diagram(node: XmlNode, ctx: SlideContext, source: Source) -> dict[str, Any] | None:
    geometry = _frame_geometry(node, ctx, "diagram")
    if geometry is None:
        return None
    drawing_path = _frame_drawing_path(node, ctx, source)
    if drawing_path is not None:
        ctx = replace(
            ctx,
            diagram=ctx.package.read_xml(drawing_path, prefix_renames={"dsp": "p"}),
            rels={**ctx.rels, RelScope.DIAGRAM: ctx.package.relationships(drawing_path)},
        )
    sp_tree = get_path(ctx.diagram, ["p:drawing", "p:spTree"])
    elements = []
    for sp in sp_tree.all("p:sp") if sp_tree is not None else []:
        el = resolve_shape(sp, ctx, Source.DIAGRAM_BG)
        if el is not None:
            elements.append(el)
    return {"type": "diagram", **geometry.box(), "rotate": geometry.rotate, "elements": elements}
