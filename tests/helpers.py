"""Shared test helper functions: XML part builders and in-memory packages."""

from __future__ import annotations

import base64
import io
import zipfile
from typing import Mapping

from deckmodel.core.ooxml.package import PptxPackage, ResourceRef
from deckmodel.core.ooxml.tree import XmlNode, parse_xml_tree
from deckmodel.core.resolve.context import (
    ExtractOptions,
    RelScope,
    SlideContext,
    build_index_tables,
    shape_tree,
)

NS = (
    'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
    'xmlns:c="http://schemas.openxmlformats.org/drawingml/2006/chart" '
    'xmlns:mc="http://schemas.openxmlformats.org/markup-compatibility/2006"'
)

DSP_NS = 'xmlns:dsp="http://schemas.microsoft.com/office/drawing/2008/diagram"'

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

ACCENT1 = "4F81BD"
ACCENT2 = "C0504D"

THEME_XML = f"""<a:theme {NS} name="Test Theme"><a:themeElements><a:clrScheme name="Test">
<a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>
<a:lt1><a:sysClr val="window" lastClr="FFFFFF"/></a:lt1>
<a:dk2><a:srgbClr val="1F497D"/></a:dk2>
<a:lt2><a:srgbClr val="EEECE1"/></a:lt2>
<a:accent1><a:srgbClr val="{ACCENT1}"/></a:accent1>
<a:accent2><a:srgbClr val="{ACCENT2}"/></a:accent2>
<a:accent3><a:srgbClr val="9BBB59"/></a:accent3>
<a:accent4><a:srgbClr val="8064A2"/></a:accent4>
<a:accent5><a:srgbClr val="4BACC6"/></a:accent5>
<a:accent6><a:srgbClr val="F79646"/></a:accent6>
<a:hlink><a:srgbClr val="0000FF"/></a:hlink>
<a:folHlink><a:srgbClr val="800080"/></a:folHlink>
</a:clrScheme></a:themeElements></a:theme>"""

CLR_MAP = (
    'bg1="lt1" tx1="dk1" bg2="lt2" tx2="dk2" accent1="accent1" accent2="accent2" '
    'accent3="accent3" accent4="accent4" accent5="accent5" accent6="accent6" '
    'hlink="hlink" folHlink="folHlink"'
)

_GROUP_HEAD = (
    '<p:nvGrpSpPr><p:cNvPr id="1" name=""/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
    "<p:grpSpPr/>"
)


def xfrm(x: int = 0, y: int = 0, cx: int = 100, cy: int = 100, attrs: str = "") -> str:
    return f'<a:xfrm {attrs}><a:off x="{x}" y="{y}"/><a:ext cx="{cx}" cy="{cy}"/></a:xfrm>'


def sp(
    node_id: int = 2,
    name: str = "Shape",
    *,
    geometry: str | None = None,
    ph: str = "",
    prst: str | None = "rect",
    sp_pr: str = "",
    tx_box: bool = False,
    body: str = "",
    style: str = "",
    tag: str = "p:sp",
) -> str:
    """A p:sp; `geometry` defaults to a 100x100 box at the origin, "" means no transform."""
    geometry = xfrm() if geometry is None else geometry
    c_nv_sp = '<p:cNvSpPr txBox="1"/>' if tx_box else "<p:cNvSpPr/>"
    ph_xml = f"<p:ph {ph}/>" if ph else ""
    prst_xml = f'<a:prstGeom prst="{prst}"><a:avLst/></a:prstGeom>' if prst else ""
    return (
        f'<{tag}><p:nvSpPr><p:cNvPr id="{node_id}" name="{name}"/>{c_nv_sp}<p:nvPr>{ph_xml}</p:nvPr></p:nvSpPr>'
        f"<p:spPr>{geometry}{prst_xml}{sp_pr}</p:spPr>{style}{body}</{tag}>"
    )


def text_body(*paragraphs: str, body_pr: str = "<a:bodyPr/>") -> str:
    return f"<p:txBody>{body_pr}<a:lstStyle/>{''.join(paragraphs)}</p:txBody>"


def pic(
    node_id: int = 5,
    name: str = "Picture",
    *,
    rid: str = "rId2",
    geometry: str | None = None,
    nv_pr: str = "",
) -> str:
    geometry = xfrm(10, 20, 30, 40) if geometry is None else geometry
    return (
        f'<p:pic><p:nvPicPr><p:cNvPr id="{node_id}" name="{name}"/><p:cNvPicPr/><p:nvPr>{nv_pr}</p:nvPr></p:nvPicPr>'
        f'<p:blipFill><a:blip r:embed="{rid}"/><a:stretch><a:fillRect/></a:stretch></p:blipFill>'
        f'<p:spPr>{geometry}<a:prstGeom prst="rect"><a:avLst/></a:prstGeom></p:spPr></p:pic>'
    )


def graphic_frame(uri: str, data: str, *, geometry: str = '<p:xfrm><a:off x="0" y="0"/><a:ext cx="400" cy="200"/></p:xfrm>') -> str:
    return (
        '<p:graphicFrame><p:nvGraphicFramePr><p:cNvPr id="9" name="Frame"/><p:cNvGraphicFramePr/><p:nvPr/>'
        f'</p:nvGraphicFramePr>{geometry}<a:graphic><a:graphicData uri="{uri}">{data}</a:graphicData></a:graphic>'
        "</p:graphicFrame>"
    )


def _c_sld(shapes: str, bg: str) -> str:
    return f"<p:cSld>{bg}<p:spTree>{_GROUP_HEAD}{shapes}</p:spTree></p:cSld>"


def solid_bg(fill: str) -> str:
    return f"<p:bg><p:bgPr>{fill}<a:effectLst/></p:bgPr></p:bg>"


def slide_xml(shapes: str = "", *, bg: str = "", clr_map_ovr: str = "", extra: str = "") -> str:
    return f"<p:sld {NS}>{_c_sld(shapes, bg)}{clr_map_ovr}{extra}</p:sld>"


def layout_xml(shapes: str = "", *, bg: str = "", clr_map_ovr: str = "", attrs: str = "") -> str:
    return f"<p:sldLayout {NS} {attrs}>{_c_sld(shapes, bg)}{clr_map_ovr}</p:sldLayout>"


def master_xml(shapes: str = "", *, bg: str = "") -> str:
    return f"<p:sldMaster {NS}>{_c_sld(shapes, bg)}<p:clrMap {CLR_MAP}/></p:sldMaster>"


def override_clr_map(**mapping: str) -> str:
    attrs = {**dict(item.split("=") for item in CLR_MAP.replace('"', "").split()), **mapping}
    rendered = " ".join(f'{k}="{v}"' for k, v in attrs.items())
    return f"<p:clrMapOvr><a:overrideClrMapping {rendered}/></p:clrMapOvr>"


def parse(xml: str, **kwargs) -> XmlNode:
    return parse_xml_tree(xml.encode("utf-8"), **kwargs)


def first_child(xml: str) -> XmlNode:
    """The root element of `xml` (not the document node)."""
    return parse(xml).children()[0]


def tree_entry(xml: str) -> XmlNode:
    """A single shape-tree entry parsed with the usual namespace declarations."""
    return first_child(f"<p:spTree {NS}>{xml}</p:spTree>").children()[0]


PRESENTATION_XML = f'<p:presentation {NS}><p:sldSz cx="9144000" cy="6858000"/></p:presentation>'


def zip_bytes(parts: Mapping[str, bytes | str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in parts.items():
            zf.writestr(name, data.encode("utf-8") if isinstance(data, str) else data)
    return buf.getvalue()


def truncate_part(src, dst, part: str, cut: int = 20):
    """Copy of the deck at `src` with the last `cut` bytes of `part` removed."""
    with zipfile.ZipFile(src) as zin, zipfile.ZipFile(dst, "w") as zout:
        for item in zin.infolist():
            data = zin.read(item.filename)
            if item.filename == part:
                data = data[:-cut]
            zout.writestr(item, data)
    return dst


def make_package(parts: Mapping[str, bytes | str] | None = None) -> PptxPackage:
    """In-memory package; ppt/presentation.xml is supplied when absent."""
    all_parts: dict[str, bytes | str] = {"ppt/presentation.xml": PRESENTATION_XML}
    all_parts.update(parts or {})
    return PptxPackage(zip_bytes(all_parts))


def make_context(
    slide: str | None = None,
    *,
    layout: str | None = None,
    master: str | None = None,
    theme: str = THEME_XML,
    rels: Mapping[RelScope, Mapping[str, ResourceRef]] | None = None,
    package: PptxPackage | None = None,
    options: ExtractOptions | None = None,
    table_styles: str | None = None,
    diagram: str | None = None,
) -> SlideContext:
    """SlideContext over XML strings; lengths are unscaled unless `options` says otherwise."""
    layout_doc = parse(layout if layout is not None else layout_xml())
    master_doc = parse(master if master is not None else master_xml())
    return SlideContext(
        package=package if package is not None else make_package(),
        slide=parse(slide if slide is not None else slide_xml()),
        layout=layout_doc,
        master=master_doc,
        theme=parse(theme),
        layout_tables=build_index_tables(shape_tree(layout_doc)),
        master_tables=build_index_tables(shape_tree(master_doc)),
        rels=rels or {},
        options=options or ExtractOptions(length_scale=1.0),
        table_styles=parse(table_styles) if table_styles else None,
        diagram=parse(diagram, prefix_renames={"dsp": "p"}) if diagram else None,
    )


def image_ref(target: str = "ppt/media/image1.png") -> ResourceRef:
    return ResourceRef(
        type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image",
        target=target,
    )
