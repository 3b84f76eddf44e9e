"""
animation.py — Click-ordered animation steps from a slide's p:timing tree.

Only the declarative sequence is extracted: the root time node's attributes
plus, per click, the innermost time node of its chain with the p:anim / p:set
directives it holds.
"""
from __future__ import annotations

import logging
from typing import Any

from deckmodel.core.ooxml.tree import XmlNode, as_list, get_path
from deckmodel.core.resolve.context import part_root

log = logging.getLogger("deckmodel")

ROOT_NODE_TYPE = "tmRoot"

_CHAIN_STEP = ["p:childTnLst", "p:par", "p:cTn"]


def _innermost(ctn: XmlNode) -> XmlNode:
    """Follow the single-child chain of nested parallel nodes to its end."""
    cur = ctn
    while True:
        nxt = get_path(cur, _CHAIN_STEP)
        if not isinstance(nxt, XmlNode):
            return cur
        cur = nxt


def _directive(value: Any) -> Any:
    if isinstance(value, list):
        return [v.to_dict() for v in value]
    return value.to_dict()


def _step(ctn: XmlNode) -> dict[str, Any]:
    last = _innermost(ctn)
    step: dict[str, Any] = {"attrs": dict(last.attrs)}
    anim = get_path(last, ["p:childTnLst", "p:anim"])
    if anim is not None:
        step["animate"] = _directive(anim)
    set_ = get_path(last, ["p:childTnLst", "p:set"])
    if set_ is not None:
        step["set"] = _directive(set_)
    return step


def extract_animations(slide: XmlNode | None) -> list[dict[str, Any]]:
    """[] or [{attrs, children: [step, ...]}] for a parsed slide document."""
    root_ctn = get_path(part_root(slide), ["p:timing", "p:tnLst", "p:par", "p:cTn"])
    if not isinstance(root_ctn, XmlNode):
        return []
    if root_ctn.attrs.get("nodeType") != ROOT_NODE_TYPE:
        log.debug("timing root nodeType=%r; no animations extracted", root_ctn.attrs.get("nodeType"))
        return []

    record: dict[str, Any] = {"attrs": dict(root_ctn.attrs), "children": []}
    seq_ctns = [s.first("p:cTn") for s in as_list(get_path(root_ctn, ["p:childTnLst", "p:seq"]))]
    seq_ctns = [c for c in seq_ctns if c is not None]
    main_seq = next((c for c in seq_ctns if c.attrs.get("nodeType") == "mainSeq"), seq_ctns[0] if seq_ctns else None)
    if main_seq is None:
        log.debug("timing tree has no main sequence")
        return [record]
    for i, par in enumerate(as_list(get_path(main_seq, ["p:childTnLst", "p:par"]))):
        ctn = par.first("p:cTn")
        if ctn is None:
            log.warning("animation step %d has no time node; skipped", i)
            continue
        record["children"].append(_step(ctn))
    return [record]
