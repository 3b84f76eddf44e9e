"""Per-slide resolution engine.

Turns one slide's parsed parts into output elements: placeholder inheritance,
color and fill resolution, geometry and group remapping, the shape-tree
walker, background composition and animation extraction.

Keep this module as a thin re-export layer so callers can import a stable path:

    from deckmodel.core.resolve import resolve_children, slide_background_fill
"""

from __future__ import annotations

from .animation import extract_animations
from .background import background_elements
from .context import ExtractOptions, SlideContext, Source, build_index_tables
from .fill import FillType, classify_fill, resolve_solid, slide_background_fill
from .geometry import group_transform, resolve_geometry
from .nodes import NodeKind, resolve_children, resolve_node

__all__ = [
    "ExtractOptions",
    "FillType",
    "NodeKind",
    "SlideContext",
    "Source",
    "background_elements",
    "build_index_tables",
    "classify_fill",
    "extract_animations",
    "group_transform",
    "resolve_children",
    "resolve_geometry",
    "resolve_node",
    "resolve_solid",
    "slide_background_fill",
]
