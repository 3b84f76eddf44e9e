"""Tests for geometry resolution and group coordinate remapping."""

from __future__ import annotations

import logging

import pytest

from deckmodel.core.errors import GroupTransformError
from deckmodel.core.resolve.context import EMU_TO_PX, Source
from deckmodel.core.resolve.geometry import angle_to_degrees, compact, group_transform, resolve_geometry
from deckmodel.core.resolve.nodes import resolve_group
from tests.helpers import NS, first_child, make_context, sp, xfrm


def _xfrm(x=0, y=0, cx=100, cy=100, attrs=""):
    return first_child(xfrm(x, y, cx, cy, attrs).replace("<a:xfrm ", f"<a:xfrm {NS} ", 1))


def _unit(value):
    return int(value) * 1.0


def _group(group_xfrm: str, *children: str):
    xml = (
        f'<p:grpSp {NS}><p:nvGrpSpPr><p:cNvPr id="10" name="Group"/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
        f"<p:grpSpPr>{group_xfrm}</p:grpSpPr>{''.join(children)}</p:grpSp>"
    )
    return first_child(xml)


def _grp_xfrm(off=(0, 0), ext=(100, 100), ch_off=(0, 0), ch_ext=(100, 100), attrs=""):
    return (
        f'<a:xfrm {attrs}><a:off x="{off[0]}" y="{off[1]}"/><a:ext cx="{ext[0]}" cy="{ext[1]}"/>'
        f'<a:chOff x="{ch_off[0]}" y="{ch_off[1]}"/><a:chExt cx="{ch_ext[0]}" cy="{ch_ext[1]}"/></a:xfrm>'
    )


class TestResolveGeometry:
    """Tests for reading position, size, rotation and flips."""

    def test_own_transform(self):
        g = resolve_geometry(_xfrm(10, 20, 30, 40, 'rot="5400000" flipH="1"'), _unit)
        assert g.box() == {"left": 10, "top": 20, "width": 30, "height": 40}
        assert g.rotate == 90
        assert g.flip_h is True
        assert g.flip_v is False

    def test_emu_scaling_rounds_to_two_decimals(self):
        g = resolve_geometry(_xfrm(914400, 1, 457200, 12345), lambda v: int(v) * EMU_TO_PX)
        assert g.left == 96
        assert g.top == 0
        assert g.width == 48
        assert g.height == 1.3

    def test_falls_back_to_layout_then_master(self):
        layout = _xfrm(1, 2, 3, 4)
        master = _xfrm(5, 6, 7, 8)
        assert resolve_geometry(None, _unit, layout, master).box() == {"left": 1, "top": 2, "width": 3, "height": 4}
        assert resolve_geometry(None, _unit, None, master).box() == {"left": 5, "top": 6, "width": 7, "height": 8}

    def test_rotation_is_not_inherited(self):
        g = resolve_geometry(None, _unit, _xfrm(attrs='rot="5400000"'))
        assert g.rotate == 0

    def test_offset_and_extent_fall_back_independently(self):
        own = first_child(f'<a:xfrm {NS}><a:off x="9" y="9"/></a:xfrm>')
        g = resolve_geometry(own, _unit, _xfrm(1, 2, 3, 4))
        assert g.box() == {"left": 9, "top": 9, "width": 3, "height": 4}

    def test_none_without_any_transform(self):
        assert resolve_geometry(None, _unit) is None

    @pytest.mark.parametrize(
        argnames=("rot", "expected"),
        argvalues=[(None, 0), ("", 0), ("bad", 0), ("60000", 1), ("1234567", 20.58), ("-5400000", -90)],
    )
    def test_angle_to_degrees(self, rot, expected):
        assert angle_to_degrees(rot) == expected

    def test_compact(self):
        assert compact(24.0) == 24
        assert isinstance(compact(24.0), int)
        assert compact(1.5) == 1.5


class TestGroups:
    """Tests for mapping group children into the group's box."""

    def test_identity_group_leaves_children_unchanged(self):
        node = _group(_grp_xfrm(), sp(geometry=xfrm(10, 20, 30, 40)))
        group = resolve_group(node, make_context(), Source.SLIDE)
        assert group["type"] == "group"
        child = group["elements"][0]
        assert (child["left"], child["top"], child["width"], child["height"]) == (10, 20, 30, 40)

    def test_scaled_group(self):
        node = _group(_grp_xfrm(ext=(100, 100), ch_ext=(50, 50)), sp(geometry=xfrm(10, 10, 20, 20)))
        child = resolve_group(node, make_context(), Source.SLIDE)["elements"][0]
        assert (child["left"], child["top"], child["width"], child["height"]) == (20, 20, 40, 40)

    def test_children_are_relative_to_child_offset(self):
        node = _group(
            _grp_xfrm(off=(500, 500), ch_off=(100, 100)),
            sp(geometry=xfrm(110, 120, 30, 40)),
        )
        group = resolve_group(node, make_context(), Source.SLIDE)
        assert (group["left"], group["top"]) == (500, 500)
        child = group["elements"][0]
        assert (child["left"], child["top"]) == (10, 20)

    def test_nested_groups_compose(self):
        inner = (
            '<p:grpSp><p:nvGrpSpPr><p:cNvPr id="11" name="Inner"/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
            f"<p:grpSpPr>{_grp_xfrm(ext=(50, 50))}</p:grpSpPr>{sp(geometry=xfrm(10, 10, 20, 20))}</p:grpSp>"
        )
        outer = resolve_group(_group(_grp_xfrm(ext=(200, 200)), inner), make_context(), Source.SLIDE)
        inner_el = outer["elements"][0]
        assert inner_el["type"] == "group"
        assert (inner_el["width"], inner_el["height"]) == (100, 100)
        leaf = inner_el["elements"][0]
        assert (leaf["left"], leaf["width"]) == (5, 10)

    def test_group_flags(self):
        node = _group(_grp_xfrm(attrs='rot="10800000" flipV="1"'))
        group = resolve_group(node, make_context(), Source.SLIDE)
        assert group["rotate"] == 180
        assert group["isFlipV"] is True
        assert group["isFlipH"] is False
        assert group["elements"] == []

    def test_collapsed_axis_keeps_unit_scale(self):
        """Two horizontal lines grouped: child and placed height are both zero."""
        node = _group(
            _grp_xfrm(off=(100, 50), ext=(300, 0), ch_off=(100, 50), ch_ext=(300, 0)),
            sp(2, "Line 1", geometry=xfrm(100, 50, 100, 0)),
            sp(3, "Line 2", geometry=xfrm(300, 50, 100, 0)),
        )
        group = resolve_group(node, make_context(), Source.SLIDE)
        assert (group["width"], group["height"]) == (300, 0)
        first, second = group["elements"]
        assert (first["left"], first["top"], first["width"], first["height"]) == (0, 0, 100, 0)
        assert (second["left"], second["top"], second["width"], second["height"]) == (200, 0, 100, 0)

    def test_empty_group(self):
        node = _group(_grp_xfrm(ext=(0, 0), ch_ext=(0, 0)))
        group = resolve_group(node, make_context(), Source.SLIDE)
        assert group["elements"] == []
        assert (group["width"], group["height"]) == (0, 0)

    def test_zero_child_extent_with_placed_extent_raises(self):
        xfrm_node = first_child(_grp_xfrm(ch_ext=(0, 100)).replace("<a:xfrm ", f"<a:xfrm {NS} ", 1))
        with pytest.raises(GroupTransformError):
            group_transform(xfrm_node, _unit)

    def test_unmappable_group_is_skipped_with_warning(self, caplog):
        node = _group(_grp_xfrm(ch_ext=(100, 0)), sp(geometry=xfrm(10, 10, 20, 20)))
        with caplog.at_level(logging.WARNING, logger="deckmodel"):
            assert resolve_group(node, make_context(), Source.SLIDE) is None
        assert "'Group' skipped" in caplog.text

    def test_group_without_transform_is_skipped(self):
        node = first_child(
            f'<p:grpSp {NS}><p:nvGrpSpPr><p:cNvPr id="10" name="G"/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
            f"<p:grpSpPr/>{sp()}</p:grpSp>"
        )
        assert resolve_group(node, make_context(), Source.SLIDE) is None
