from __future__ import annotations

import argparse
import logging
from pathlib import Path

import orjson
from tqdm import tqdm

from deckmodel.core.errors import DeckModelError
from deckmodel.core.extract.pptx_extractor import extract_pptx
from deckmodel.core.resolve.context import ExtractOptions
from deckmodel.core.utils.logger import setup_logger
from deckmodel.core.utils.schema_validate import PRESENTATION_SCHEMA, SCHEMA_DIR, validate_document, validate_file

MAX_REPORTED_ERRORS = 30


def _package_root() -> Path:
    # .../src/deckmodel/apps/cli/main.py -> .../src/deckmodel
    return Path(__file__).resolve().parents[2]


def _print_errors(errs: list[str]) -> None:
    for m in errs[:MAX_REPORTED_ERRORS]:
        print(f"  - {m}")
    if len(errs) > MAX_REPORTED_ERRORS:
        print(f"  ... ({len(errs)} errors)")


def cmd_paths(_: argparse.Namespace) -> int:
    print(f"package_root: {_package_root()}")
    print(f"schema_dir: {SCHEMA_DIR}")
    print(f"schema.presentation: {PRESENTATION_SCHEMA}")
    return 0


def _options_from_args(args: argparse.Namespace) -> ExtractOptions:
    options = ExtractOptions.from_toml(Path(args.config)) if args.config else ExtractOptions()
    if args.length_scale is not None:
        options.length_scale = args.length_scale
    if args.font_size_scale is not None:
        options.font_size_scale = args.font_size_scale
    options.validate()
    return options


def cmd_extract(args: argparse.Namespace) -> int:
    in_path = Path(args.input).resolve()
    out_path = Path(args.out).resolve()

    if not in_path.exists():
        print(f"[NG] input not found: {in_path}")
        return 2
    if in_path.suffix.lower() != ".pptx":
        print(f"[NG] unsupported input type: {in_path.suffix} (use .pptx)")
        return 2

    try:
        options = _options_from_args(args)
    except (OSError, ValueError) as e:
        print("[NG] invalid options")
        print(f"      detail: {e}")
        return 2

    with tqdm(total=100, unit="%", desc=in_path.name, disable=args.quiet) as bar:

        def on_progress(fraction: float) -> None:
            bar.update(round(fraction * 100) - bar.n)

        options.on_progress = on_progress
        try:
            data = extract_pptx(in_path, options)
        except DeckModelError as e:
            # Do not leave stale output behind.
            if out_path.exists():
                out_path.unlink()
            print("[NG] extract failed")
            print(f"      detail: {e}")
            return 2

    if not args.no_validate:
        errs = validate_document(data)
        if errs:
            print(f"[NG] extracted document does not conform to {PRESENTATION_SCHEMA.name}")
            _print_errors(errs)
            return 2

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
    print(f"[OK] extracted: {out_path} ({len(data['slides'])} slides)")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    instance_path = Path(args.instance).resolve()
    errs = validate_file(instance_path)
    if not errs:
        print(f"[OK] {instance_path} conforms to {PRESENTATION_SCHEMA.name}")
        return 0
    if errs[0].startswith("[ERR]"):
        print(errs[0])
        return 2
    print(f"[NG] {instance_path} does NOT conform to {PRESENTATION_SCHEMA.name}")
    _print_errors(errs)
    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deckmodel")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_paths = sub.add_parser("paths", help="show package and schema paths")
    p_paths.set_defaults(func=cmd_paths)

    p_ext = sub.add_parser("extract", help="convert a .pptx into a render-ready JSON document")
    p_ext.add_argument("input", help="path to input .pptx")
    p_ext.add_argument("--out", required=True, help="output .json path")
    p_ext.add_argument("--config", help="TOML file with a [deckmodel] options table")
    p_ext.add_argument("--length-scale", type=float, help="output units per EMU (default 96/914400)")
    p_ext.add_argument("--font-size-scale", type=float, help="output font units per point (default 100/75)")
    p_ext.add_argument("--no-validate", action="store_true", help="skip schema validation of the result")
    p_ext.add_argument("--quiet", action="store_true", help="hide the progress bar")
    p_ext.add_argument("--verbose", action="store_true", help="log debug details")
    p_ext.set_defaults(func=cmd_extract)

    p_val = sub.add_parser("validate", help="validate a JSON document against the presentation schema")
    p_val.add_argument("instance", help="path to json to validate")
    p_val.set_defaults(func=cmd_validate)

    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING)
    return args.func(args)


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
