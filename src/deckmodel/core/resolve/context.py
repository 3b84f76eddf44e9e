"""
context.py — Per-slide resolution context, options and lookup tables.

A `SlideContext` bundles everything one slide's resolution may read: the
parsed slide/layout/master/theme/diagram trees, the layout and master index
tables, relationship maps per scope and the extraction options. It is built
once per slide and never shared between slides; the only mutable piece is the
`ResourceCache` it owns.
"""
from __future__ import annotations

import base64
import logging
import tomllib
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping

from deckmodel.core.ooxml.package import PptxPackage, ResourceRef
from deckmodel.core.ooxml.tree import XmlNode, get_path

log = logging.getLogger("deckmodel")

EMU_TO_PX = 96 / 914400
PT_TO_PX = 100 / 75

_NV_WRAPPERS = ("p:nvSpPr", "p:nvPicPr", "p:nvGraphicFramePr", "p:nvCxnSpPr", "p:nvGrpSpPr")

_MIME_BY_EXT: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "svg": "image/svg+xml",
    "emf": "image/x-emf",
    "wmf": "image/x-wmf",
    "wdp": "image/vnd.ms-photo",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "audio/ogg",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}


def mime_type_for(path: str) -> str:
    ext = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return _MIME_BY_EXT.get(ext, "application/octet-stream")


def file_extension(path: str) -> str:
    return path.rsplit(".", 1)[-1].lower() if "." in path else ""


@dataclass(frozen=True)
class MediaResource:
    """Bytes of one embedded resource handed to `externalize_resource`."""

    path: str
    data: bytes
    mime_type: str

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


@dataclass
class ExtractOptions:
    length_scale: float = EMU_TO_PX
    font_size_scale: float = PT_TO_PX
    media_cache_dir: str = "extracted_media_cache"
    on_progress: Callable[[float], None] | None = None
    externalize_resource: Callable[[MediaResource], Any] | None = None

    @classmethod
    def from_toml(cls, path: Path) -> ExtractOptions:
        """Scalar options from the `[deckmodel]` table of a TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)
        table = data.get("deckmodel", {})
        if not isinstance(table, dict):
            raise ValueError(f"[deckmodel] in {path} must be a table")
        scalar = {f.name for f in fields(cls) if f.name not in ("on_progress", "externalize_resource")}
        unknown = sorted(set(table) - scalar)
        if unknown:
            raise ValueError(f"unknown option(s) in {path}: {', '.join(unknown)}")
        opts = cls(**table)
        opts.validate()
        return opts

    def validate(self) -> None:
        if not self.length_scale > 0:
            raise ValueError(f"length_scale must be positive, got {self.length_scale!r}")
        if not self.font_size_scale > 0:
            raise ValueError(f"font_size_scale must be positive, got {self.font_size_scale!r}")


class Source(Enum):
    """Which tree a node being resolved came from."""

    SLIDE = "slide"
    LAYOUT_BG = "slideLayoutBg"
    MASTER_BG = "slideMasterBg"
    DIAGRAM_BG = "diagramBg"


class RelScope(Enum):
    SLIDE = "slide"
    LAYOUT = "layout"
    MASTER = "master"
    DIAGRAM = "diagram"


_SCOPE_BY_SOURCE: dict[Source, RelScope] = {
    Source.SLIDE: RelScope.SLIDE,
    Source.LAYOUT_BG: RelScope.LAYOUT,
    Source.MASTER_BG: RelScope.MASTER,
    Source.DIAGRAM_BG: RelScope.DIAGRAM,
}


def scope_for(source: Source) -> RelScope:
    return _SCOPE_BY_SOURCE[source]


# ---------------------------------------------------------------------------
# Tree helpers shared by the resolvers
# ---------------------------------------------------------------------------


def part_root(doc: XmlNode | None) -> XmlNode | None:
    """Root element of a parsed part (p:sld, p:sldLayout, a:theme, ...)."""
    if doc is None:
        return None
    children = doc.children()
    return children[0] if children else None


def shape_tree(doc: XmlNode | None) -> XmlNode | None:
    return get_path(part_root(doc), ["p:cSld", "p:spTree"])


def non_visual_props(node: XmlNode | None) -> XmlNode | None:
    """The p:nv*Pr wrapper of a shape-tree entry, whatever its kind."""
    if node is None:
        return None
    for tag in _NV_WRAPPERS:
        nv = node.first(tag)
        if nv is not None:
            return nv
    return None


def placeholder_attrs(node: XmlNode | None) -> dict[str, str]:
    return get_path(non_visual_props(node), ["p:nvPr", "p:ph", "attrs"]) or {}


# ---------------------------------------------------------------------------
# Index tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexTables:
    by_id: dict[str, XmlNode] = field(default_factory=dict)
    by_idx: dict[str, XmlNode] = field(default_factory=dict)
    by_type: dict[str, XmlNode] = field(default_factory=dict)


def build_index_tables(sp_tree: XmlNode | None) -> IndexTables:
    """Index the top-level entries of a layout/master shape tree.

    Later entries with the same key replace earlier ones.
    """
    tables = IndexTables()
    if sp_tree is None:
        return tables
    for node in sp_tree.children():
        if node.tag in ("p:nvGrpSpPr", "p:grpSpPr"):
            continue
        nv = non_visual_props(node)
        node_id = get_path(nv, ["p:cNvPr", "attrs", "id"])
        idx = get_path(nv, ["p:nvPr", "p:ph", "attrs", "idx"])
        ph_type = get_path(nv, ["p:nvPr", "p:ph", "attrs", "type"])
        if node_id:
            tables.by_id[node_id] = node
        if idx:
            tables.by_idx[idx] = node
        if ph_type:
            tables.by_type[ph_type] = node
    return tables


# ---------------------------------------------------------------------------
# Decoded-resource cache
# ---------------------------------------------------------------------------


class ResourceCache:
    """Lazily populated cache of resolved resources, owned by one slide."""

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    def get_or_load(self, path: str, loader: Callable[[], Any]) -> Any:
        if path not in self._items:
            self._items[path] = loader()
        return self._items[path]

    def __contains__(self, path: object) -> bool:
        return path in self._items

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Slide context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SlideContext:
    package: PptxPackage
    slide: XmlNode
    layout: XmlNode | None
    master: XmlNode | None
    theme: XmlNode
    layout_tables: IndexTables
    master_tables: IndexTables
    rels: Mapping[RelScope, Mapping[str, ResourceRef]]
    options: ExtractOptions
    table_styles: XmlNode | None = None
    diagram: XmlNode | None = None
    cache: ResourceCache = field(default_factory=ResourceCache)

    def scale(self, emu: Any) -> float:
        """Archive length units to output units."""
        return int(emu) * self.options.length_scale

    def resource(self, scope: RelScope, rid: str | None) -> ResourceRef | None:
        if not rid:
            return None
        return self.rels.get(scope, {}).get(rid)

    def read_media(self, path: str) -> MediaResource:
        """Bytes of an embedded resource, read at most once per slide."""
        return self.cache.get_or_load(
            path, lambda: MediaResource(path=path, data=self.package.read(path), mime_type=mime_type_for(path))
        )

    def master_color_map(self) -> dict[str, str]:
        return get_path(part_root(self.master), ["p:clrMap", "attrs"]) or {}

    def color_map_for(self, level: RelScope) -> dict[str, str]:
        """Color map in effect at `level` (slide, layout or master)."""
        if level is RelScope.SLIDE:
            ovr = get_path(part_root(self.slide), ["p:clrMapOvr", "a:overrideClrMapping", "attrs"])
            if ovr:
                return ovr
            level = RelScope.LAYOUT
        if level is RelScope.LAYOUT:
            ovr = get_path(part_root(self.layout), ["p:clrMapOvr", "a:overrideClrMapping", "attrs"])
            if ovr:
                return ovr
        return self.master_color_map()
