"""Nearest-neighbor resizing utilities for NumPy arrays.

Provides integer-agnostic nearest-neighbor scaling to arbitrary output size
for crisp pixel-art operations.
"""
from __future__ import annotations

import numpy as np

Array = np.ndarray


def resize_nearest(arr: Array, new_h: int, new_w: int) -> Array:
    """Resize an image to (new_h, new_w) via nearest-neighbor.

    Output pixel ``i`` samples input pixel ``floor((i + 0.5) * H / new_h)``,
    i.e. the one under its center.

    Parameters
    ----------
    arr : np.ndarray
        Input array of shape (H, W, C), dtype=uint8.
    new_h : int
        Target height (>=1).
    new_w : int
        Target width (>=1).

    Returns
    -------
    np.ndarray
        Resized image.
    """
    if not isinstance(arr, np.ndarray) or arr.ndim != 3:
        raise ValueError("arr must be an image with shape (H, W, C)")
    if new_h < 1 or new_w < 1:
        raise ValueError("new_h and new_w must be >= 1")

    H, W, _ = arr.shape
    if H == new_h and W == new_w:
        return arr.copy()

    y = (np.arange(new_h) + 0.5) * (H / new_h)
    x = (np.arange(new_w) + 0.5) * (W / new_w)
    yi = np.clip(np.floor(y), 0, H - 1).astype(np.int64)
    xi = np.clip(np.floor(x), 0, W - 1).astype(np.int64)

    out = arr[yi[:, None], xi[None, :], :]
    return out.astype(np.uint8)
