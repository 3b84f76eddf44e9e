"""
background.py — Elements a slide inherits from its layout and master.
"""
from __future__ import annotations

import logging

from deckmodel.core.ooxml.tree import get_path
from deckmodel.core.resolve.context import SlideContext, Source, part_root, placeholder_attrs, shape_tree
from deckmodel.core.resolve.nodes import Element, resolve_node

log = logging.getLogger("deckmodel")


def background_elements(ctx: SlideContext) -> list[Element]:
    """Layout shapes (minus picture placeholders) followed by master shapes.

    Later elements paint on top. The layout's showMasterSp flag does not gate
    master shapes.
    """
    elements: list[Element] = []
    layout_tree = shape_tree(ctx.layout)
    for node in layout_tree.children() if layout_tree is not None else []:
        if placeholder_attrs(node).get("type") == "pic":
            continue
        el = resolve_node(node, ctx, Source.LAYOUT_BG)
        if el is not None:
            elements.append(el)

    show_master = get_path(part_root(ctx.layout), ["attrs", "showMasterSp"])
    if show_master is not None:
        log.debug("layout showMasterSp=%s (master shapes are included regardless)", show_master)
    master_tree = shape_tree(ctx.master)
    for node in master_tree.children() if master_tree is not None else []:
        el = resolve_node(node, ctx, Source.MASTER_BG)
        if el is not None:
            elements.append(el)
    return elements
