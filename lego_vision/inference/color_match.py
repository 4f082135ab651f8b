"""
Colour Matching – Lab Sample → Nearest Palette Colour
=====================================================

Samples are compared to the reference palette in CIE Lab (D65) using the
CIEDE2000 colour difference, which tracks perceived difference far better
than Euclidean RGB distance.

  • Reference colours are converted sRGB → Lab once per palette and
    memoised (palettes are immutable tuples).
  • The minimum ΔE wins; ties go to the colour declared first.
  • An empty palette yields ``ColorMatch("Unknown", inf)`` instead of
    raising.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import NamedTuple, Sequence, Tuple

import numpy as np
from skimage.color import deltaE_ciede2000, rgb2lab

from lego_vision.models.palette import LEGO_COLORS, UNKNOWN_COLOR, ReferenceColor


class ColorMatch(NamedTuple):
    """Best palette entry for a sample and its CIEDE2000 distance."""
    name: str
    delta_e: float


def rgb_to_lab(rgb: Sequence[float]) -> np.ndarray:
    """Convert one sRGB colour (0–255) to CIE Lab (L 0–100)."""
    arr = np.asarray(rgb, dtype=np.float64).reshape(1, 1, 3) / 255.0
    return rgb2lab(arr).reshape(3)


@lru_cache(maxsize=8)
def _palette_lab(palette: Tuple[ReferenceColor, ...]) -> np.ndarray:
    rgb = np.array([c.rgb for c in palette], dtype=np.float64).reshape(1, -1, 3)
    return rgb2lab(rgb / 255.0).reshape(-1, 3)


def match_color(
    lab: Sequence[float],
    palette: Sequence[ReferenceColor] = LEGO_COLORS,
) -> ColorMatch:
    """Return the palette colour closest to a CIE Lab sample.

    Parameters
    ----------
    lab : sequence of float
        ``(L, a, b)`` with L in 0–100.
    palette : sequence of ReferenceColor
        Ordered reference colours.

    Returns
    -------
    ColorMatch
    """
    palette = tuple(palette)
    if not palette:
        return ColorMatch(UNKNOWN_COLOR, math.inf)

    refs = _palette_lab(palette)
    sample = np.tile(np.asarray(lab, dtype=np.float64).reshape(1, 3), (len(refs), 1))
    distances = deltaE_ciede2000(sample, refs)

    best = int(np.argmin(distances))  # first minimum on ties
    return ColorMatch(palette[best].name, float(distances[best]))
