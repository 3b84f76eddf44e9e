from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any

from pptx.opc.constants import RELATIONSHIP_TYPE as RT

from deckmodel.core.ooxml.package import RT_DIAGRAM_DRAWING, TABLE_STYLES_PART, PptxPackage
from deckmodel.core.ooxml.tree import get_path
from deckmodel.core.resolve.animation import extract_animations
from deckmodel.core.resolve.background import background_elements
from deckmodel.core.resolve.context import (
    ExtractOptions,
    RelScope,
    SlideContext,
    Source,
    build_index_tables,
    shape_tree,
)
from deckmodel.core.resolve.fill import slide_background_fill
from deckmodel.core.resolve.geometry import PRECISION
from deckmodel.core.resolve.nodes import resolve_children

log = logging.getLogger("deckmodel")


def _first_target(package: PptxPackage, part_path: str | None, reltype: str) -> str | None:
    if not part_path:
        return None
    return package.related_part(part_path, reltype)


def slide_size(package: PptxPackage, options: ExtractOptions) -> dict[str, float]:
    attrs = get_path(package.presentation(), ["p:presentation", "p:sldSz", "attrs"]) or {}
    return {
        "width": round(int(attrs.get("cx", 0)) * options.length_scale, PRECISION),
        "height": round(int(attrs.get("cy", 0)) * options.length_scale, PRECISION),
    }


def build_slide_context(
    package: PptxPackage,
    slide_path: str,
    presentation_theme: str,
    options: ExtractOptions,
) -> SlideContext:
    """Load every part one slide's resolution may read."""
    layout_path = _first_target(package, slide_path, RT.SLIDE_LAYOUT)
    master_path = _first_target(package, layout_path, RT.SLIDE_MASTER)
    theme_path = _first_target(package, master_path, RT.THEME)
    if theme_path is None or not package.has(theme_path):
        theme_path = presentation_theme
    diagram_path = _first_target(package, slide_path, RT_DIAGRAM_DRAWING)

    layout = package.read_xml_optional(layout_path)
    master = package.read_xml_optional(master_path)
    if layout is None:
        log.debug("%s has no layout part", slide_path)
    return SlideContext(
        package=package,
        slide=package.read_xml(slide_path),
        layout=layout,
        master=master,
        theme=package.read_xml(theme_path),
        layout_tables=build_index_tables(shape_tree(layout)),
        master_tables=build_index_tables(shape_tree(master)),
        rels={
            RelScope.SLIDE: package.relationships(slide_path),
            RelScope.LAYOUT: package.relationships(layout_path) if layout_path else {},
            RelScope.MASTER: package.relationships(master_path) if master_path else {},
            RelScope.DIAGRAM: package.relationships(diagram_path) if diagram_path else {},
        },
        options=options,
        table_styles=package.read_xml_optional(TABLE_STYLES_PART),
        diagram=package.read_xml_optional(diagram_path, prefix_renames={"dsp": "p"}),
    )


def extract_slide(ctx: SlideContext) -> dict[str, Any]:
    """{fill, elements, animations} for one slide.

    Elements are the layout/master background elements (text placeholders
    dropped) followed by the slide's own shape tree, in paint order.
    """
    inherited = [el for el in background_elements(ctx) if el.get("type") != "text"]
    own = resolve_children(shape_tree(ctx.slide), ctx, Source.SLIDE)
    return {
        "fill": slide_background_fill(ctx),
        "elements": inherited + own,
        "animations": extract_animations(ctx.slide),
    }


def extract_pptx(source: str | Path | bytes | IO[bytes], options: ExtractOptions | None = None) -> dict[str, Any]:
    """Convert a .pptx package into {slides, size}.

    Raises MissingThemeError when the presentation has no theme and
    InvalidPackageError when `source` is not a presentation package.
    """
    options = options or ExtractOptions()
    options.validate()
    with PptxPackage(source) as package:
        theme = package.theme_path()
        slide_paths = package.slide_paths()
        total = len(slide_paths)
        log.info("extracting %d slide(s)", total)
        slides: list[dict[str, Any]] = []
        for i, slide_path in enumerate(slide_paths):
            ctx = build_slide_context(package, slide_path, theme, options)
            slide = extract_slide(ctx)
            slides.append(slide)
            log.info("slide %d/%d (%s): %d element(s)", i + 1, total, slide_path, len(slide["elements"]))
            if options.on_progress is not None:
                options.on_progress((i + 1) / total)
        size = slide_size(package, options)
    log.info("extraction finished: %d slide(s), %sx%s", len(slides), size["width"], size["height"])
    return {"slides": slides, "size": size}


__all__ = ["build_slide_context", "extract_pptx", "extract_slide", "slide_size"]
