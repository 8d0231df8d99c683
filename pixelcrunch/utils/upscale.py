"""Nearest-neighbor upscaling for NumPy arrays.

Upscaling the engine output back to display or export size must never
interpolate: every output pixel copies one input pixel so block edges stay
hard and colors stay exact palette members.
"""
from __future__ import annotations

import numpy as np

from .resize import resize_nearest

Array = np.ndarray


def upscale_nearest(arr: Array, factor: int) -> Array:
    """Upscale an image array by an integer factor using nearest-neighbor.

    Parameters
    ----------
    arr : np.ndarray
        Input array of shape (H, W, C), dtype=uint8.
    factor : int
        Upscale factor (>=1).

    Returns
    -------
    np.ndarray
        Upscaled image array.
    """
    if not isinstance(arr, np.ndarray) or arr.ndim != 3:
        raise ValueError("arr must be an image with shape (H, W, C)")
    if factor < 1:
        raise ValueError("factor must be >= 1")
    if factor == 1:
        return arr.copy()

    up = np.repeat(np.repeat(arr, factor, axis=0), factor, axis=1)
    return up.astype(np.uint8)


def upscale_to_size(arr: Array, height: int, width: int, block: int = 0) -> Array:
    """Scale a processed raster back to the source size (nearest-neighbor).

    With ``block`` (the pixel size used to downscale) each output pixel is
    repeated ``block`` times and the result cropped, so blocks line up with
    the source pixels they were averaged from. Without it the raster is
    stretched to fit.
    """
    if block >= 1:
        up = upscale_nearest(arr, block)
        if up.shape[0] < height or up.shape[1] < width:
            raise ValueError("block too small to cover the requested size")
        return up[:height, :width]
    return resize_nearest(arr, height, width)
