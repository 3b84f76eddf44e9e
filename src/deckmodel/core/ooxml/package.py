"""
package.py — Archive access and part discovery for .pptx packages.

Everything here is package plumbing the resolvers consume: reading entries,
parsing XML parts into `XmlNode` trees, enumerating a part's relationships,
and locating the slides and the theme.
"""
from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import IO, Mapping

from lxml import etree
from pptx.opc.constants import CONTENT_TYPE as CT
from pptx.opc.constants import RELATIONSHIP_TYPE as RT
from pptx.opc.packuri import PackURI

from deckmodel.core.errors import InvalidPackageError, MissingThemeError, PartNotFoundError
from deckmodel.core.ooxml.tree import XmlNode, get_path, parse_xml_tree

log = logging.getLogger("deckmodel")

PRESENTATION_PART = "ppt/presentation.xml"
TABLE_STYLES_PART = "ppt/tableStyles.xml"
CONTENT_TYPES_PART = "[Content_Types].xml"

# Not part of the ECMA vocabulary; written by PowerPoint for pre-rendered SmartArt.
RT_DIAGRAM_DRAWING = "http://schemas.microsoft.com/office/2007/relationships/diagramDrawing"

_PART_NUMBER_RE = re.compile(r"(\d+)\.xml$")


@dataclass(frozen=True)
class ResourceRef:
    """Target of one relationship, scoped to the part that declared it."""

    type: str
    target: str
    external: bool = False

    @property
    def kind(self) -> str:
        """Short relationship kind, e.g. "image" or "slideLayout"."""
        return self.type.rsplit("/", 1)[-1]


def _part_number(path: str) -> int:
    m = _PART_NUMBER_RE.search(path)
    return int(m.group(1)) if m else 0


class PptxPackage:
    """Read-only view over the zip container of a presentation."""

    def __init__(self, source: str | Path | bytes | IO[bytes]) -> None:
        try:
            if isinstance(source, (bytes, bytearray)):
                self._zip = zipfile.ZipFile(BytesIO(bytes(source)), "r")
            else:
                self._zip = zipfile.ZipFile(source, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise InvalidPackageError(f"not a readable pptx package: {e}") from e
        self._names = set(self._zip.namelist())
        self._xml_cache: dict[tuple[str, tuple[tuple[str, str], ...]], XmlNode] = {}
        if PRESENTATION_PART not in self._names:
            self._zip.close()
            raise InvalidPackageError(f"package has no {PRESENTATION_PART}")

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> PptxPackage:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------

    def has(self, path: str) -> bool:
        return path in self._names

    def read(self, path: str) -> bytes:
        """Bytes of one archive entry; PartNotFoundError when absent."""
        if path not in self._names:
            raise PartNotFoundError(path)
        return self._zip.read(path)

    def read_xml(self, path: str, *, prefix_renames: Mapping[str, str] | None = None) -> XmlNode:
        key = (path, tuple(sorted((prefix_renames or {}).items())))
        cached = self._xml_cache.get(key)
        if cached is None:
            try:
                cached = parse_xml_tree(self.read(path), prefix_renames=prefix_renames)
            except etree.XMLSyntaxError as e:
                log.error("malformed XML part %s: %s", path, e)
                raise InvalidPackageError(f"malformed XML part {path}: {e}") from e
            self._xml_cache[key] = cached
        return cached

    def read_xml_optional(self, path: str, *, prefix_renames: Mapping[str, str] | None = None) -> XmlNode | None:
        if not path or path not in self._names:
            return None
        return self.read_xml(path, prefix_renames=prefix_renames)

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def relationships(self, part_path: str) -> dict[str, ResourceRef]:
        """rId -> ResourceRef for `part_path`; empty when the part has no rels."""
        part_uri = PackURI("/" + part_path)
        rels_path = part_uri.rels_uri.membername
        rels = self.read_xml_optional(rels_path)
        out: dict[str, ResourceRef] = {}
        if rels is None:
            return out
        root = get_path(rels, ["Relationships"])
        if root is None:
            return out
        for rel in root.all("Relationship"):
            rid = rel.attrs.get("Id")
            target = rel.attrs.get("Target", "")
            if not rid:
                continue
            external = rel.attrs.get("TargetMode") == "External"
            if not external:
                target = PackURI.from_rel_ref(part_uri.baseURI, target).membername
            out[rid] = ResourceRef(type=rel.attrs.get("Type", ""), target=target, external=external)
        return out

    def related_part(self, part_path: str, reltype: str) -> str | None:
        """First internal target of `reltype` declared by `part_path`."""
        for ref in self.relationships(part_path).values():
            if ref.type == reltype and not ref.external:
                return ref.target
        return None

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def content_type_parts(self, content_type: str) -> list[str]:
        """Override part names with `content_type`, sorted by numeric suffix."""
        types = get_path(self.read_xml(CONTENT_TYPES_PART), ["Types"])
        parts: list[str] = []
        for item in types.all("Override") if types is not None else []:
            if item.attrs.get("ContentType") == content_type:
                parts.append(item.attrs.get("PartName", "").lstrip("/"))
        return sorted(parts, key=_part_number)

    def presentation(self) -> XmlNode:
        return self.read_xml(PRESENTATION_PART)

    def slide_paths(self) -> list[str]:
        """Slide parts in presentation order.

        Follows `p:sldIdLst`; decks without one fall back to content-type
        discovery sorted by slide number.
        """
        rels = self.relationships(PRESENTATION_PART)
        ordered: list[str] = []
        sld_id_lst = get_path(self.presentation(), ["p:presentation", "p:sldIdLst"])
        for sld_id in sld_id_lst.all("p:sldId") if sld_id_lst is not None else []:
            ref = rels.get(sld_id.attrs.get("r:id", ""))
            if ref is not None and ref.type == RT.SLIDE:
                ordered.append(ref.target)
        if ordered:
            return ordered
        log.debug("presentation has no slide id list; using content types")
        return self.content_type_parts(CT.PML_SLIDE)

    def theme_path(self) -> str:
        """Presentation-level theme part. Missing theme is fatal."""
        target = self.related_part(PRESENTATION_PART, RT.THEME)
        if target is None or target not in self._names:
            log.error("presentation has no theme part (target=%s)", target)
            raise MissingThemeError("Can't open theme file: presentation declares no readable theme part")
        return target
