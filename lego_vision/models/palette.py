"""
Reference Palette – LEGO Brick Colours
======================================

The ordered table of colours a cell can be classified as.  Order matters:
when two references are equally close to a sample the one declared first
wins, so keep this list stable.

RGB values are sRGB, 0–255.
"""

from __future__ import annotations

from typing import Dict, NamedTuple, Tuple


UNKNOWN_COLOR: str = "Unknown"


class ReferenceColor(NamedTuple):
    """A named palette entry."""
    name: str
    rgb: Tuple[int, int, int]


# ── Canonical palette (declaration order = tie-break order) ───────────

LEGO_COLORS: Tuple[ReferenceColor, ...] = (
    ReferenceColor("White", (255, 255, 255)),
    ReferenceColor("Light Bluish Gray", (160, 165, 169)),
    ReferenceColor("Dark Bluish Gray", (108, 110, 104)),
    ReferenceColor("Black", (5, 19, 29)),
    ReferenceColor("Red", (231, 0, 0)),
    ReferenceColor("Dark Red", (114, 14, 15)),
    ReferenceColor("Orange", (254, 138, 24)),
    ReferenceColor("Yellow", (242, 205, 55)),
    ReferenceColor("Bright Light Yellow", (255, 240, 58)),
    ReferenceColor("Tan", (228, 205, 158)),
    ReferenceColor("Reddish Brown", (88, 42, 18)),
    ReferenceColor("Lime", (187, 233, 11)),
    ReferenceColor("Bright Green", (75, 159, 74)),
    ReferenceColor("Green", (35, 120, 65)),
    ReferenceColor("Dark Green", (24, 70, 50)),
    ReferenceColor("Medium Azure", (54, 174, 191)),
    ReferenceColor("Dark Azure", (7, 139, 201)),
    ReferenceColor("Medium Blue", (90, 147, 219)),
    ReferenceColor("Blue", (0, 85, 191)),
    ReferenceColor("Dark Blue", (10, 52, 99)),
    ReferenceColor("Magenta", (146, 57, 120)),
    ReferenceColor("Dark Pink", (200, 112, 160)),
    ReferenceColor("Bright Pink", (228, 173, 200)),
    ReferenceColor("Medium Lavender", (172, 120, 186)),
)

# Name → RGB, for renderers that stroke regions in their own colour
COLOR_TO_RGB: Dict[str, Tuple[int, int, int]] = {c.name: c.rgb for c in LEGO_COLORS}


def rgb_to_bgr(rgb: Tuple[int, int, int]) -> Tuple[int, int, int]:
    """Swap channel order for OpenCV drawing calls."""
    r, g, b = rgb
    return (b, g, r)
