"""Tests for the deckmodel command line."""

from __future__ import annotations

import logging
from pathlib import Path

import orjson
import pytest

from deckmodel.apps.cli.main import build_parser, run
from tests.helpers import truncate_part


# region TestParser
class TestParser:
    """Test that the parser stores the values we expect."""

    def test_extract_defaults(self) -> None:
        args = build_parser().parse_args(["extract", "deck.pptx", "--out", "out.json"])
        assert args.input == "deck.pptx"
        assert args.out == "out.json"
        assert args.config is None
        assert args.length_scale is None
        assert args.no_validate is False
        assert args.quiet is False

    @pytest.mark.parametrize(
        argnames="flag,dest",
        argvalues=[("--no-validate", "no_validate"), ("--quiet", "quiet"), ("--verbose", "verbose")],
    )
    def test_extract_flags(self, flag: str, dest: str) -> None:
        args = build_parser().parse_args(["extract", "deck.pptx", "--out", "out.json", flag])
        assert getattr(args, dest) is True

    def test_subcommand_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# endregion


# region TestExtractCommand
class TestExtractCommand:
    """Test the extract subcommand end to end."""

    def test_extract_writes_json(self, simple_deck_path: Path, tmp_path: Path, capsys) -> None:
        out = tmp_path / "out" / "deck.json"
        assert run(["extract", str(simple_deck_path), "--out", str(out), "--quiet"]) == 0
        doc = orjson.loads(out.read_bytes())
        assert len(doc["slides"]) == 2
        assert "[OK] extracted" in capsys.readouterr().out

    def test_scale_flags(self, simple_deck_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "deck.json"
        assert run(["extract", str(simple_deck_path), "--out", str(out), "--quiet", "--length-scale", "1"]) == 0
        assert orjson.loads(out.read_bytes())["size"] == {"width": 9144000, "height": 6858000}

    def test_config_file(self, simple_deck_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "deckmodel.toml"
        config.write_text("[deckmodel]\nlength_scale = 1.0\n", encoding="utf-8")
        out = tmp_path / "deck.json"
        assert run(["extract", str(simple_deck_path), "--out", str(out), "--quiet", "--config", str(config)]) == 0
        assert orjson.loads(out.read_bytes())["size"]["width"] == 9144000

    def test_bad_config_is_reported(self, simple_deck_path: Path, tmp_path: Path, capsys) -> None:
        config = tmp_path / "deckmodel.toml"
        config.write_text("[deckmodel]\nzoom = 3\n", encoding="utf-8")
        code = run(["extract", str(simple_deck_path), "--out", str(tmp_path / "x.json"), "--config", str(config)])
        assert code == 2
        assert "[NG] invalid options" in capsys.readouterr().out

    def test_missing_input(self, tmp_path: Path, capsys) -> None:
        assert run(["extract", str(tmp_path / "nope.pptx"), "--out", str(tmp_path / "x.json")]) == 2
        assert "[NG] input not found" in capsys.readouterr().out

    def test_wrong_suffix(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "notes.docx"
        doc.write_bytes(b"x")
        assert run(["extract", str(doc), "--out", str(tmp_path / "x.json")]) == 2
        assert "unsupported input type" in capsys.readouterr().out

    def test_failed_extract_removes_stale_output(self, tmp_path: Path, capsys) -> None:
        bogus = tmp_path / "bogus.pptx"
        bogus.write_bytes(b"not a zip")
        out = tmp_path / "stale.json"
        out.write_text("{}", encoding="utf-8")
        assert run(["extract", str(bogus), "--out", str(out), "--quiet"]) == 2
        assert not out.exists()
        assert "[NG] extract failed" in capsys.readouterr().out

    def test_malformed_part_is_reported(self, simple_deck_path: Path, tmp_path: Path, capsys) -> None:
        broken = truncate_part(simple_deck_path, tmp_path / "truncated.pptx", "ppt/slides/slide1.xml")
        out = tmp_path / "deck.json"
        assert run(["extract", str(broken), "--out", str(out), "--quiet"]) == 2
        assert not out.exists()
        captured = capsys.readouterr().out
        assert "[NG] extract failed" in captured
        assert "malformed XML part ppt/slides/slide1.xml" in captured

    def test_verbose_sets_debug_level(self, simple_deck_path: Path, tmp_path: Path) -> None:
        run(["extract", str(simple_deck_path), "--out", str(tmp_path / "x.json"), "--quiet", "--verbose"])
        assert logging.getLogger("deckmodel").level == logging.DEBUG


# endregion


# region TestValidateCommand
class TestValidateCommand:
    """Test the validate and paths subcommands."""

    def test_validate_extracted_output(self, simple_deck_path: Path, tmp_path: Path, capsys) -> None:
        out = tmp_path / "deck.json"
        run(["extract", str(simple_deck_path), "--out", str(out), "--quiet", "--no-validate"])
        assert run(["validate", str(out)]) == 0
        assert "[OK]" in capsys.readouterr().out

    def test_validate_reports_violations(self, tmp_path: Path, capsys) -> None:
        instance = tmp_path / "bad.json"
        instance.write_bytes(orjson.dumps({"slides": [{"fill": {"type": "color", "value": "#fff"}}]}))
        assert run(["validate", str(instance)]) == 2
        out = capsys.readouterr().out
        assert "does NOT conform" in out
        assert "'size' is a required property" in out

    def test_validate_missing_file(self, tmp_path: Path, capsys) -> None:
        assert run(["validate", str(tmp_path / "missing.json")]) == 2
        assert "[ERR] instance not found" in capsys.readouterr().out

    def test_paths(self, capsys) -> None:
        assert run(["paths"]) == 0
        out = capsys.readouterr().out
        assert "schema.presentation:" in out
        assert "presentation.schema.json" in out


# endregion
