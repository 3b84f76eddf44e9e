"""
nodes.py — Shape-tree walker: one element per recognised entry, in document order.

The set of entry kinds is closed (`NodeKind`). Anything else in a shape tree
yields no element; structural children of a group (its non-visual and group
properties) are skipped silently, other unknown tags are logged at debug level.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from deckmodel.core.errors import GroupTransformError
from deckmodel.core.ooxml.tree import XmlNode, get_path
from deckmodel.core.resolve.context import SlideContext, Source
from deckmodel.core.resolve.geometry import GRP_XFRM, group_transform
from deckmodel.core.resolve.graphic_frame import (
    CHART_URI,
    DIAGRAM_URI,
    OLE_URI,
    TABLE_URI,
    graphic_data_uri,
    resolve_chart,
    resolve_diagram,
    resolve_table,
)
from deckmodel.core.resolve.shapes import resolve_connector, resolve_picture, resolve_shape

log = logging.getLogger("deckmodel")

Element = dict[str, Any]

_STRUCTURAL = frozenset({"p:nvGrpSpPr", "p:grpSpPr", "p:extLst"})


class NodeKind(Enum):
    SHAPE = "p:sp"
    CONNECTOR = "p:cxnSp"
    PICTURE = "p:pic"
    GRAPHIC_FRAME = "p:graphicFrame"
    GROUP = "p:grpSp"
    ALTERNATE_CONTENT = "mc:AlternateContent"


_KIND_BY_TAG: dict[str, NodeKind] = {kind.value: kind for kind in NodeKind}


def node_kind(tag: str) -> NodeKind | None:
    return _KIND_BY_TAG.get(tag)


def resolve_node(node: XmlNode, ctx: SlideContext, source: Source) -> Element | None:
    kind = node_kind(node.tag)
    if kind is None:
        if node.tag not in _STRUCTURAL:
            log.debug("unrecognised shape-tree entry %s skipped", node.tag)
        return None
    return _HANDLERS[kind](node, ctx, source)


def resolve_children(container: XmlNode | None, ctx: SlideContext, source: Source) -> list[Element]:
    """Elements for every child of `container`, in document order."""
    elements: list[Element] = []
    if container is None:
        return elements
    for child in container.children():
        el = resolve_node(child, ctx, source)
        if el is not None:
            elements.append(el)
    return elements


# ---------------------------------------------------------------------------
# Groups and alternate content
# ---------------------------------------------------------------------------


def resolve_group(node: XmlNode, ctx: SlideContext, source: Source) -> Element | None:
    try:
        transform = group_transform(get_path(node, GRP_XFRM), ctx.scale)
    except GroupTransformError as e:
        log.warning("group %r skipped: %s", get_path(node, ["p:nvGrpSpPr", "p:cNvPr", "attrs", "name"]), e)
        return None
    if transform is None:
        log.debug("group without transform skipped")
        return None
    g = transform.geometry
    children = resolve_children(node, ctx, source)
    return {
        "type": "group",
        **g.box(),
        "rotate": g.rotate,
        "isFlipV": g.flip_v,
        "isFlipH": g.flip_h,
        "elements": [transform.apply(el) for el in children],
    }


def resolve_fallback(container: XmlNode | None, ctx: SlideContext, source: Source) -> Element | None:
    """A fallback container as a group when it has a group transform, else its first element."""
    if container is None:
        return None
    if get_path(container, GRP_XFRM) is not None:
        return resolve_group(container, ctx, source)
    for child in container.children():
        el = resolve_node(child, ctx, source)
        if el is not None:
            return el
    return None


def resolve_alternate_content(node: XmlNode, ctx: SlideContext, source: Source) -> Element | None:
    return resolve_fallback(node.first("mc:Fallback"), ctx, source)


# ---------------------------------------------------------------------------
# Graphic frames
# ---------------------------------------------------------------------------


def resolve_ole(node: XmlNode, ctx: SlideContext, source: Source) -> Element | None:
    ole = get_path(node, ["a:graphic", "a:graphicData", "mc:AlternateContent", "mc:Fallback", "p:oleObj"])
    if ole is None:
        log.debug("OLE object without fallback preview skipped")
        return None
    return resolve_fallback(ole, ctx, source)


_FRAME_HANDLERS: dict[str, Callable[[XmlNode, SlideContext, Source], Element | None]] = {
    TABLE_URI: resolve_table,
    CHART_URI: resolve_chart,
    DIAGRAM_URI: resolve_diagram,
    OLE_URI: resolve_ole,
}


def resolve_graphic_frame(node: XmlNode, ctx: SlideContext, source: Source) -> Element | None:
    uri = graphic_data_uri(node)
    handler = _FRAME_HANDLERS.get(uri or "")
    if handler is None:
        log.debug("graphic frame with data uri %r skipped", uri)
        return None
    return handler(node, ctx, source)


_HANDLERS: dict[NodeKind, Callable[[XmlNode, SlideContext, Source], Element | None]] = {
    NodeKind.SHAPE: resolve_shape,
    NodeKind.CONNECTOR: resolve_connector,
    NodeKind.PICTURE: resolve_picture,
    NodeKind.GRAPHIC_FRAME: resolve_graphic_frame,
    NodeKind.GROUP: resolve_group,
    NodeKind.ALTERNATE_CONTENT: resolve_alternate_content,
}
