"""Dithering algorithms and a unified entry-point for application.

Exported API
------------
- apply_dither(image_array, palette, method="Bayer 4x4", amount=1.0, ...)
- quantize_indices(work, palette, method, ...)

Supported methods
-----------------
- Threshold       : no dithering; tone-mapped color matched directly
- Bayer 2x2/4x4/8x8 : ordered dithering with a fixed threshold matrix
- Floyd-Steinberg : error diffusion, 4 neighbours, weights sum to 1
- Atkinson        : error diffusion, 6 neighbours at 1/8, weights sum to 3/4

Implementation notes
--------------------
All dithers operate on NumPy arrays and return palette indices; matching uses
the luma-weighted distance in ``pixelcrunch.palette``. Error diffusion runs a
Numba-compiled raster loop.
"""
from __future__ import annotations

from typing import Union

import numpy as np

from ..palette import Palette, nearest_color_indices
from ..params import DitherMethod
from ..tone import apply_tone
from . import atkinson, bayer, floyd

Array = np.ndarray


def _palette_array(palette: Union[Palette, Array]) -> Array:
    if isinstance(palette, Palette):
        return palette.to_array()
    return np.asarray(palette, dtype=np.float64).reshape(-1, 3)


def quantize_indices(
    work: Array,
    palette: Array,
    method: DitherMethod,
    amount: float = 1.0,
    brightness: float = 0.0,
    contrast: float = 0.0,
) -> Array:
    """Tone map, dither and palette-match ``work``; return (H, W) indices.

    ``work`` must be a float64 (H, W, 3) buffer. Error diffusion methods
    overwrite it; the others leave it untouched.
    """
    if method is DitherMethod.THRESHOLD:
        return nearest_color_indices(apply_tone(work, brightness, contrast), palette)
    if method.matrix_size:
        return bayer.dither_bayer(work, palette, method.matrix_size, amount, brightness, contrast)
    if method is DitherMethod.FLOYD_STEINBERG:
        return floyd.dither_floyd(work, palette, amount, brightness, contrast)
    if method is DitherMethod.ATKINSON:
        return atkinson.dither_atkinson(work, palette, amount, brightness, contrast)

    raise ValueError(f"Unknown dithering method: {method}")


def apply_dither(
    image_array: Array,
    palette: Union[Palette, Array],
    method: Union[str, DitherMethod] = DitherMethod.BAYER_4X4,
    amount: float = 1.0,
    brightness: float = 0.0,
    contrast: float = 0.0,
) -> Array:
    """Apply the selected dithering method to an image array.

    Parameters
    ----------
    image_array : np.ndarray
        RGB image array of shape (H, W, 3).
    palette : Palette | np.ndarray
        Target colors.
    method : str | DitherMethod
        Dithering method to apply (display name, enum member or CLI alias).
    amount : float
        Dither strength in [0, 1].

    Returns
    -------
    np.ndarray
        Palette-quantized image array, dtype=uint8, same shape as the input.
    """
    if not isinstance(image_array, np.ndarray) or image_array.ndim != 3 or image_array.shape[2] != 3:
        raise ValueError("image_array must be an RGB array with shape (H, W, 3)")

    pal = _palette_array(palette)
    work = image_array.astype(np.float64)  # always a copy
    idx = quantize_indices(work, pal, DitherMethod.parse(method), amount, brightness, contrast)
    return pal.astype(np.uint8)[idx]


__all__ = ["apply_dither", "quantize_indices"]
