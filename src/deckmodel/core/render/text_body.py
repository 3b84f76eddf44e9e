"""
text_body.py — DrawingML text bodies rendered as HTML fragments.

One <p> per a:p, one <span> per run. Only what a renderer needs to place
text is carried: alignment, font size, weight, style, underline, color.
"""
from __future__ import annotations

import html

from deckmodel.core.ooxml.tree import XmlNode, get_path
from deckmodel.core.resolve.context import RelScope, SlideContext
from deckmodel.core.resolve.fill import resolve_solid
from deckmodel.core.resolve.geometry import compact

_ALIGN = {"l": "left", "ctr": "center", "r": "right", "just": "justify", "dist": "justify"}


def _paragraph_align(p: XmlNode, layout_node: XmlNode | None) -> str | None:
    algn = get_path(p, ["a:pPr", "attrs", "algn"])
    if algn is None:
        lvl = int(get_path(p, ["a:pPr", "attrs", "lvl"]) or 0) + 1
        algn = get_path(layout_node, ["p:txBody", "a:lstStyle", f"a:lvl{lvl}pPr", "attrs", "algn"])
    return _ALIGN.get(algn) if algn else None


def _run_style(r_pr: XmlNode | None, ctx: SlideContext, level: RelScope) -> str:
    if r_pr is None:
        return ""
    styles: list[str] = []
    sz = r_pr.attrs.get("sz")
    if sz and sz.isdigit():
        styles.append(f"font-size: {compact(round(int(sz) / 100 * ctx.options.font_size_scale, 2))}px;")
    if r_pr.attrs.get("b") == "1":
        styles.append("font-weight: bold;")
    if r_pr.attrs.get("i") == "1":
        styles.append("font-style: italic;")
    decorations = []
    if r_pr.attrs.get("u", "none") != "none":
        decorations.append("underline")
    if r_pr.attrs.get("strike", "noStrike") != "noStrike":
        decorations.append("line-through")
    if decorations:
        styles.append(f"text-decoration: {' '.join(decorations)};")
    solid = r_pr.first("a:solidFill")
    if solid is not None:
        styles.append(f"color: #{resolve_solid(solid, ctx.color_map_for(level), None, ctx)};")
    typeface = get_path(r_pr, ["a:latin", "attrs", "typeface"])
    if typeface and not typeface.startswith("+"):
        styles.append(f"font-family: {typeface};")
    return "".join(styles)


def _span(run: XmlNode, ctx: SlideContext, level: RelScope) -> str:
    text = html.escape(get_path(run, ["a:t"]).text or "") if "a:t" in run else ""
    style = _run_style(run.first("a:rPr"), ctx, level)
    if not style:
        return f"<span>{text}</span>"
    return f'<span style="{style}">{text}</span>'


def render_text_body(
    tx_body: XmlNode | None,
    ctx: SlideContext,
    *,
    layout_node: XmlNode | None = None,
    level: RelScope = RelScope.SLIDE,
) -> str:
    """HTML for a p:txBody / a:txBody; "" when there is no body."""
    if tx_body is None:
        return ""
    parts: list[str] = []
    for p in tx_body.all("a:p"):
        inner: list[str] = []
        for child in p.children():
            if child.tag in ("a:r", "a:fld"):
                inner.append(_span(child, ctx, level))
            elif child.tag == "a:br":
                inner.append("<br>")
        align = _paragraph_align(p, layout_node)
        open_tag = f'<p style="text-align: {align};">' if align else "<p>"
        parts.append(open_tag + "".join(inner) + "</p>")
    return "".join(parts)
