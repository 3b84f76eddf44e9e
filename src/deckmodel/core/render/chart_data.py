"""
chart_data.py — Series data out of a chart part's c:plotArea.

Returns {type, data, marker?, barDir?, holeSize?, grouping?, style?} for the
first recognised chart in the plot area, or None when there is none. Optional
keys are only present when the chart declares them.
"""
from __future__ import annotations

import logging
from typing import Any

from deckmodel.core.ooxml.tree import XmlNode, get_path

log = logging.getLogger("deckmodel")

_CATEGORY_CHARTS = (
    "c:lineChart",
    "c:line3DChart",
    "c:barChart",
    "c:bar3DChart",
    "c:pieChart",
    "c:pie3DChart",
    "c:doughnutChart",
    "c:areaChart",
    "c:area3DChart",
    "c:radarChart",
)
_XY_CHARTS = ("c:scatterChart", "c:bubbleChart")


def _cache_points(ref_parent: XmlNode | None) -> dict[int, str]:
    """idx -> value of the cached points under a c:cat / c:val / c:tx style node."""
    if ref_parent is None:
        return {}
    cache = None
    for ref, cache_tag in (
        ("c:numRef", "c:numCache"),
        ("c:strRef", "c:strCache"),
        ("c:multiLvlStrRef", "c:multiLvlStrCache"),
    ):
        cache = get_path(ref_parent, [ref, cache_tag])
        if cache is not None:
            break
    if cache is None:
        cache = ref_parent.first("c:numLit") or ref_parent.first("c:strLit")
    if cache is None:
        return {}
    if "c:lvl" in cache:
        cache = cache.first("c:lvl")
    points: dict[int, str] = {}
    for pt in cache.all("c:pt"):
        v = get_path(pt, ["c:v"])
        if v is not None and v.text is not None:
            points[int(pt.attrs.get("idx", len(points)))] = v.text
    return points


def _number(text: str | None) -> float | None:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _series_key(ser: XmlNode) -> str:
    names = _cache_points(ser.first("c:tx"))
    if names:
        return names[min(names)]
    v = get_path(ser, ["c:tx", "c:v"])
    return v.text if v is not None and v.text else ""


def _category_series(chart: XmlNode) -> list[dict[str, Any]]:
    data = []
    for ser in chart.all("c:ser"):
        labels = _cache_points(ser.first("c:cat"))
        values = _cache_points(ser.first("c:val"))
        data.append(
            {
                "key": _series_key(ser),
                "values": [{"x": idx, "y": _number(values[idx])} for idx in sorted(values)],
                "xlabels": {str(idx): labels[idx] for idx in sorted(labels)},
            }
        )
    return data


def _xy_series(chart: XmlNode) -> list[dict[str, Any]]:
    data = []
    for ser in chart.all("c:ser"):
        xs = _cache_points(ser.first("c:xVal"))
        ys = _cache_points(ser.first("c:yVal"))
        sizes = _cache_points(ser.first("c:bubbleSize"))
        values = []
        for idx in sorted(ys):
            point: dict[str, Any] = {"x": _number(xs.get(idx)) if idx in xs else idx, "y": _number(ys[idx])}
            if idx in sizes:
                point["size"] = _number(sizes[idx])
            values.append(point)
        data.append({"key": _series_key(ser), "values": values})
    return data


def _attr(chart: XmlNode, tag: str) -> str | None:
    return get_path(chart, [tag, "attrs", "val"])


def extract_chart(plot_area: XmlNode | None) -> dict[str, Any] | None:
    if plot_area is None:
        return None
    for chart in plot_area.children():
        tag = chart.tag
        if tag in _CATEGORY_CHARTS:
            out: dict[str, Any] = {"type": tag[2:], "data": _category_series(chart)}
        elif tag in _XY_CHARTS:
            out = {"type": tag[2:], "data": _xy_series(chart)}
        else:
            continue
        if tag in ("c:lineChart", "c:line3DChart"):
            out["marker"] = _attr(chart, "c:marker") == "1"
        if tag in ("c:barChart", "c:bar3DChart") and _attr(chart, "c:barDir") is not None:
            out["barDir"] = _attr(chart, "c:barDir")
        if tag == "c:doughnutChart" and _attr(chart, "c:holeSize") is not None:
            out["holeSize"] = _attr(chart, "c:holeSize")
        if _attr(chart, "c:grouping") is not None:
            out["grouping"] = _attr(chart, "c:grouping")
        style = _attr(chart, "c:scatterStyle") or _attr(chart, "c:radarStyle")
        if style is not None:
            out["style"] = style
        return out
    log.debug("plot area holds no supported chart type")
    return None
