"""
color.py — Hex/HSL color arithmetic and theme scheme-color lookup.

Colors travel as hex strings without "#": 6 digits (RGB) or 8 digits (RGBA).
Anything that does not parse as hex (a preset name such as "black") is
passed through untouched by every modifier.
"""
from __future__ import annotations

import colorsys
import math
from typing import Mapping

from deckmodel.core.ooxml.tree import XmlNode, get_path
from deckmodel.core.resolve.context import part_root

# Used when no color map is in effect.
DEFAULT_COLOR_MAP: dict[str, str] = {
    "bg1": "lt1",
    "tx1": "dk1",
    "bg2": "lt2",
    "tx2": "dk2",
}


def _round(x: float) -> int:
    """Round half up, the way browsers serialize channel values."""
    return int(math.floor(x + 0.5))


def _clamp01(x: float) -> float:
    return min(max(x, 0.0), 1.0)


def parse_hex(value: str | None) -> tuple[float, float, float, float] | None:
    """(r, g, b, a) in 0..1, or None when `value` is not a hex color."""
    if not value:
        return None
    s = value.lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) not in (6, 8):
        return None
    try:
        channels = [int(s[i : i + 2], 16) / 255 for i in range(0, len(s), 2)]
    except ValueError:
        return None
    if len(channels) == 3:
        channels.append(1.0)
    r, g, b, a = channels
    return (r, g, b, a)


def to_hex(r: float, g: float, b: float, a: float = 1.0, *, with_alpha: bool = False) -> str:
    parts = [_round(_clamp01(c) * 255) for c in (r, g, b)]
    if with_alpha:
        parts.append(_round(_clamp01(a) * 255))
    return "".join(f"{p:02X}" for p in parts)


def to_hsl(value: str) -> tuple[float, float, float, float] | None:
    """(hue degrees, saturation, lightness, alpha) of a hex color."""
    rgba = parse_hex(value)
    if rgba is None:
        return None
    r, g, b, a = rgba
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return (h * 360, s, l, a)


def from_hsl(h: float, s: float, l: float, a: float = 1.0, *, with_alpha: bool = False) -> str:
    r, g, b = colorsys.hls_to_rgb((h % 360) / 360, _clamp01(l), _clamp01(s))
    return to_hex(r, g, b, a, with_alpha=with_alpha)


def hsl_to_hex(hue_deg: float, sat: float, lum: float) -> str:
    return from_hsl(hue_deg, sat, lum)


# ---------------------------------------------------------------------------
# Modifiers (values already divided by 100000)
# ---------------------------------------------------------------------------


def apply_alpha(color: str, alpha: float) -> str:
    rgba = parse_hex(color)
    if rgba is None:
        return color
    r, g, b, _ = rgba
    return to_hex(r, g, b, alpha, with_alpha=True)


def _with_hsl(color: str, with_alpha: bool, fn) -> str:
    hsl = to_hsl(color)
    if hsl is None:
        return color
    h, s, l, a = fn(*hsl)
    return from_hsl(h, s, l, a, with_alpha=with_alpha)


def apply_hue_mod(color: str, multiplier: float, with_alpha: bool = False) -> str:
    def mod(h: float, s: float, l: float, a: float):
        h = h * multiplier
        if h >= 360:
            h -= 360
        return h, s, l, a

    return _with_hsl(color, with_alpha, mod)


def apply_lum_mod(color: str, multiplier: float, with_alpha: bool = False) -> str:
    return _with_hsl(color, with_alpha, lambda h, s, l, a: (h, s, min(l * multiplier, 1.0), a))


def apply_lum_off(color: str, offset: float, with_alpha: bool = False) -> str:
    return _with_hsl(color, with_alpha, lambda h, s, l, a: (h, s, _clamp01(l + offset), a))


def apply_sat_mod(color: str, multiplier: float, with_alpha: bool = False) -> str:
    return _with_hsl(color, with_alpha, lambda h, s, l, a: (h, min(s * multiplier, 1.0), l, a))


def apply_shade(color: str, shade: float, with_alpha: bool = False) -> str:
    shade = min(shade, 1.0)
    return _with_hsl(color, with_alpha, lambda h, s, l, a: (h, s, min(l * shade, 1.0), a))


def apply_tint(color: str, tint: float, with_alpha: bool = False) -> str:
    tint = min(tint, 1.0)
    return _with_hsl(color, with_alpha, lambda h, s, l, a: (h, s, l * tint + (1 - tint), a))


def scale_lightness(color: str, lum_mod: float, lum_off: float) -> str:
    """l' = l * lum_mod + lum_off with hue and saturation unchanged."""
    return _with_hsl(color, False, lambda h, s, l, a: (h, s, l * lum_mod + lum_off, a))


# ---------------------------------------------------------------------------
# Scheme colors
# ---------------------------------------------------------------------------


def theme_slot_for(name: str, color_map: Mapping[str, str] | None = None) -> str:
    """Palette slot ("dk1", "accent2", ...) a symbolic scheme name points at."""
    if color_map and name in color_map:
        return color_map[name]
    return DEFAULT_COLOR_MAP.get(name, name)


def scheme_color_from_theme(
    name: str | None,
    theme: XmlNode | None,
    color_map: Mapping[str, str] | None = None,
) -> str | None:
    """RGB hex of a scheme color name, or None when the theme lacks the slot."""
    if not name:
        return None
    slot = theme_slot_for(name, color_map)
    ref = get_path(part_root(theme), ["a:themeElements", "a:clrScheme", f"a:{slot}"])
    if ref is None:
        return None
    return get_path(ref, ["a:srgbClr", "attrs", "val"]) or get_path(ref, ["a:sysClr", "attrs", "lastClr"])
