from __future__ import annotations

from deckmodel.core.ooxml.tree import XmlNode, get_path

_ANCHOR_PATH = ["p:txBody", "a:bodyPr", "attrs", "anchor"]


def vertical_align(node: XmlNode, layout_node: XmlNode | None = None, master_node: XmlNode | None = None) -> str:
    """Return "up", "mid" or "down" from the first text-body anchor found."""
    anchor = None
    for candidate in (node, layout_node, master_node):
        anchor = get_path(candidate, _ANCHOR_PATH)
        if anchor:
            break
    if anchor == "ctr":
        return "mid"
    if anchor == "b":
        return "down"
    return "up"
