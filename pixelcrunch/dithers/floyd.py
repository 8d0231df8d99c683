"""Floyd–Steinberg error diffusion dithering.

Kernel (normalized by 16), raster order only:
      *   7
  3   5   1
"""
from __future__ import annotations

import numpy as np

from .diffusion import diffuse

Array = np.ndarray

FLOYD_STEINBERG_KERNEL = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


def dither_floyd(
    work: Array,
    palette: Array,
    amount: float = 1.0,
    brightness: float = 0.0,
    contrast: float = 0.0,
) -> Array:
    """Apply Floyd–Steinberg dithering against ``palette``.

    ``work`` is a float64 (H, W, 3) buffer and is modified in place.
    Returns palette indices of shape (H, W).
    """
    return diffuse(work, palette, FLOYD_STEINBERG_KERNEL, amount, brightness, contrast)
