"""Atkinson error diffusion dithering."""
from __future__ import annotations

import numpy as np

from .diffusion import diffuse

Array = np.ndarray

# Six neighbours at 1/8 each. The remaining 2/8 of the error is dropped.
ATKINSON_KERNEL = (
    (1, 0, 1 / 8),
    (2, 0, 1 / 8),
    (-1, 1, 1 / 8),
    (0, 1, 1 / 8),
    (1, 1, 1 / 8),
    (0, 2, 1 / 8),
)


def dither_atkinson(
    work: Array,
    palette: Array,
    amount: float = 1.0,
    brightness: float = 0.0,
    contrast: float = 0.0,
) -> Array:
    """Apply Atkinson dithering against ``palette``.

    Losing a quarter of the error tends to push midtones toward the palette
    extremes, giving the higher-contrast classic Mac look.
    ``work`` is a float64 (H, W, 3) buffer and is modified in place.
    Returns palette indices of shape (H, W).
    """
    return diffuse(work, palette, ATKINSON_KERNEL, amount, brightness, contrast)
