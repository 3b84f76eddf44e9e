from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

SCHEMA_DIR = Path(__file__).resolve().parents[1] / "schemas"
PRESENTATION_SCHEMA = SCHEMA_DIR / "presentation.schema.json"


def load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def _validator(schema_path: Path) -> Draft202012Validator:
    return Draft202012Validator(load_json(schema_path))


def _format_path(path: Any) -> str:
    out = "$"
    for p in path:
        out += f"[{p!r}]" if isinstance(p, str) else f"[{p}]"
    return out


def validate_document(doc: Any, schema_path: Path = PRESENTATION_SCHEMA) -> list[str]:
    """Validate an extracted document.

    Returns human-readable "<jsonpath>: <message>" strings, empty when valid.
    """
    errors = sorted(_validator(schema_path).iter_errors(doc), key=lambda e: [str(p) for p in e.path])
    return [f"{_format_path(e.path)}: {e.message}" for e in errors]


def validate_file(instance_path: Path, schema_path: Path = PRESENTATION_SCHEMA) -> list[str]:
    """Like `validate_document` for a JSON file; missing files are reported as "[ERR] ..."."""
    if not schema_path.exists():
        return [f"[ERR] schema not found: {schema_path}"]
    if not instance_path.exists():
        return [f"[ERR] instance not found: {instance_path}"]
    return validate_document(load_json(instance_path), schema_path)
