"""
deckmodel — .pptx packages to a normalized, render-ready JSON document model.

Public API:

    extract_pptx(source, options=None) -> {"slides": [...], "size": {...}}
    ExtractOptions(length_scale, font_size_scale, media_cache_dir, on_progress, externalize_resource)
    validate_document(doc) -> list[str]      # [] == valid
"""
from deckmodel.core.errors import (
    DeckModelError,
    GroupTransformError,
    InvalidPackageError,
    MissingThemeError,
    PartNotFoundError,
)
from deckmodel.core.extract.pptx_extractor import extract_pptx
from deckmodel.core.resolve.context import ExtractOptions, MediaResource
from deckmodel.core.utils.schema_validate import validate_document

__version__ = "0.1.0"

__all__ = [
    "DeckModelError",
    "ExtractOptions",
    "GroupTransformError",
    "InvalidPackageError",
    "MediaResource",
    "MissingThemeError",
    "PartNotFoundError",
    "extract_pptx",
    "validate_document",
]
