"""Shared fixtures"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.util import Emu

from tests.helpers import PNG_1X1

BLANK_LAYOUT = 6


@pytest.fixture(autouse=True)
def reset_deckmodel_logger():
    """Undo CLI logger setup so caplog keeps seeing records in later tests."""
    yield
    logger = logging.getLogger("deckmodel")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def png_stream() -> io.BytesIO:
    return io.BytesIO(PNG_1X1)


@pytest.fixture
def simple_deck_path(tmp_path: Path) -> Path:
    """Two-slide deck: a red rectangle with a dark background, then a text box."""
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    slide.background.fill.solid()
    slide.background.fill.fore_color.rgb = RGBColor(0x11, 0x22, 0x33)
    rect = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, Emu(914400), Emu(914400), Emu(1828800), Emu(914400))
    rect.fill.solid()
    rect.fill.fore_color.rgb = RGBColor(0xFF, 0x00, 0x00)

    slide2 = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    box = slide2.shapes.add_textbox(Emu(0), Emu(0), Emu(914400), Emu(457200))
    box.text_frame.text = "Hello"

    path = tmp_path / "simple.pptx"
    prs.save(str(path))
    return path


@pytest.fixture
def rich_deck_path(tmp_path: Path, png_stream: io.BytesIO) -> Path:
    """One slide with a picture, a 2x2 table with a vertical merge, a group and a connector."""
    from pptx.enum.shapes import MSO_CONNECTOR

    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    slide.shapes.add_picture(png_stream, Emu(0), Emu(0), Emu(914400), Emu(914400))

    table = slide.shapes.add_table(2, 2, Emu(0), Emu(1828800), Emu(1828800), Emu(914400)).table
    table.cell(0, 0).text = "A"
    table.cell(0, 1).text = "B"
    table.cell(1, 1).text = "D"
    table.cell(0, 0).merge(table.cell(1, 0))

    group = slide.shapes.add_group_shape()
    group.shapes.add_shape(MSO_SHAPE.OVAL, Emu(2743200), Emu(0), Emu(914400), Emu(914400))
    group.shapes.add_shape(MSO_SHAPE.RECTANGLE, Emu(3657600), Emu(914400), Emu(914400), Emu(914400))

    slide.shapes.add_connector(MSO_CONNECTOR.STRAIGHT, Emu(0), Emu(4572000), Emu(914400), Emu(4572000))

    path = tmp_path / "rich.pptx"
    prs.save(str(path))
    return path
