"""
tree.py — Generic parsed-XML tree consumed by every resolver.

A node maps each child tag to either a single child node or a list of child
nodes, depending only on how often the tag occurred in the source. Code that
walks the tree goes through `as_list` / `XmlNode.all` (always a list) or
`get_path` (value or None) instead of checking cardinality itself.

Tags and attribute names are namespace-prefixed strings ("p:sp", "r:embed")
using the canonical prefixes in `NSMAP`, whatever prefixes the part declares.
Package-level vocabularies (relationships, content types) stay unprefixed.
"""
from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence, Union

from lxml import etree

NSMAP: dict[str, str] = {
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "c": "http://schemas.openxmlformats.org/drawingml/2006/chart",
    "dgm": "http://schemas.openxmlformats.org/drawingml/2006/diagram",
    "dsp": "http://schemas.microsoft.com/office/drawing/2008/diagram",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
    "mc": "http://schemas.openxmlformats.org/markup-compatibility/2006",
    "p14": "http://schemas.microsoft.com/office/powerpoint/2010/main",
    "a14": "http://schemas.microsoft.com/office/drawing/2010/main",
    "a16": "http://schemas.microsoft.com/office/drawing/2014/main",
    "xml": "http://www.w3.org/XML/1998/namespace",
}

_UNPREFIXED: frozenset[str] = frozenset(
    {
        "http://schemas.openxmlformats.org/package/2006/relationships",
        "http://schemas.openxmlformats.org/package/2006/content-types",
    }
)

_PREFIX_BY_URI: dict[str, str] = {uri: pfx for pfx, uri in NSMAP.items()}

# No DTD/entity expansion and no network access for untrusted package parts.
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True, remove_pis=True)


class XmlNode:
    """One element of a parsed part."""

    __slots__ = ("tag", "attrs", "text", "_children", "_order")

    def __init__(self, tag: str, attrs: dict[str, str] | None = None, text: str | None = None) -> None:
        self.tag = tag
        self.attrs: dict[str, str] = attrs or {}
        self.text = text
        self._children: dict[str, Union[XmlNode, list[XmlNode]]] = {}
        self._order: list[XmlNode] = []

    def append(self, child: XmlNode) -> None:
        existing = self._children.get(child.tag)
        if existing is None:
            self._children[child.tag] = child
        elif isinstance(existing, list):
            existing.append(child)
        else:
            self._children[child.tag] = [existing, child]
        self._order.append(child)

    def __getitem__(self, tag: str) -> Union[XmlNode, list[XmlNode]]:
        return self._children[tag]

    def __contains__(self, tag: object) -> bool:
        return tag in self._children

    def get(self, tag: str, default: Any = None) -> Any:
        return self._children.get(tag, default)

    def keys(self) -> Iterator[str]:
        return iter(self._children.keys())

    def all(self, tag: str) -> list[XmlNode]:
        """Children with `tag` in document order, whatever their count."""
        return as_list(self._children.get(tag))

    def first(self, tag: str) -> XmlNode | None:
        found = self.all(tag)
        return found[0] if found else None

    def children(self) -> list[XmlNode]:
        """Every element child in document order."""
        return list(self._order)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly copy: {"attrs": {...}, "<tag>": {...} | [...], "text"?}."""
        out: dict[str, Any] = {"attrs": dict(self.attrs)}
        for tag, child in self._children.items():
            if isinstance(child, list):
                out[tag] = [c.to_dict() for c in child]
            else:
                out[tag] = child.to_dict()
        if self.text is not None:
            out["text"] = self.text
        return out

    def __repr__(self) -> str:
        return f"XmlNode({self.tag!r}, attrs={self.attrs!r}, children={list(self._children)!r})"


def as_list(value: Any) -> list[XmlNode]:
    """Normalize a single node / list of nodes / None into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def get_path(node: Any, path: Sequence[str | int]) -> Any:
    """Follow `path` from `node`; return None as soon as a step is missing.

    Steps are child tags, the literal "attrs" (switches to the attribute map),
    attribute names, or integer indexes into a repeated child.
    """
    cur = node
    for step in path:
        if cur is None:
            return None
        if isinstance(cur, XmlNode):
            cur = cur.attrs if step == "attrs" else cur.get(step)
        elif isinstance(cur, Mapping):
            cur = cur.get(step)
        elif isinstance(cur, list):
            if isinstance(step, int) and -len(cur) <= step < len(cur):
                cur = cur[step]
            else:
                return None
        else:
            return None
    return cur


def _prefixed(name: str, nsmap: Mapping[str | None, str], renames: Mapping[str, str]) -> str:
    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    if uri in _UNPREFIXED:
        return local
    pfx = _PREFIX_BY_URI.get(uri)
    if pfx is None:
        pfx = next((k for k, v in nsmap.items() if v == uri and k), None)
    if pfx is None:
        return local
    pfx = renames.get(pfx, pfx)
    return f"{pfx}:{local}"


def _convert(el: etree._Element, renames: Mapping[str, str]) -> XmlNode:
    nsmap = el.nsmap
    attrs = {_prefixed(k, nsmap, renames): v for k, v in el.attrib.items()}
    elements = [child for child in el if isinstance(child.tag, str)]
    text = el.text if not elements else None
    node = XmlNode(_prefixed(el.tag, nsmap, renames), attrs, text)
    for child in elements:
        node.append(_convert(child, renames))
    return node


def parse_xml_tree(data: bytes, *, prefix_renames: Mapping[str, str] | None = None) -> XmlNode:
    """Parse part bytes into a document node whose only child is the root element.

    `prefix_renames` maps canonical prefixes onto others, e.g. {"dsp": "p"} lets
    diagram drawings be walked with the same paths as slide shape trees.
    """
    root = etree.fromstring(data, parser=_PARSER)
    doc = XmlNode("#document")
    doc.append(_convert(root, prefix_renames or {}))
    return doc
