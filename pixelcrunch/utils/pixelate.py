"""Pixelation utilities operating on NumPy arrays.

Downscaling averages each ``factor x factor`` block into one output pixel.
When the image size is not a multiple of ``factor`` the last row/column of
blocks is partial and averages only the pixels it covers, so the output is
``ceil(H / factor) x ceil(W / factor)``.
"""
from __future__ import annotations

import numpy as np

Array = np.ndarray


def _pad_to_multiple(arr: Array, factor: int) -> tuple[Array, tuple[int, int]]:
    """Zero-pad array along H and W so both are multiples of `factor`.

    Returns the padded array and the original (H, W).
    """
    h, w = arr.shape[:2]
    pad_h = (factor - (h % factor)) % factor
    pad_w = (factor - (w % factor)) % factor
    if pad_h == 0 and pad_w == 0:
        return arr, (h, w)

    pad_width = [(0, pad_h), (0, pad_w)] + [(0, 0)] * (arr.ndim - 2)
    padded = np.pad(arr, pad_width=pad_width, mode="constant", constant_values=0)
    return padded, (h, w)


def downscaled_size(h: int, w: int, factor: int) -> tuple[int, int]:
    """Output (height, width) for a block size of ``factor``."""
    return -(-h // factor), -(-w // factor)


def downscale_block_average(arr: Array, factor: int) -> Array:
    """Downscale an image by integer ``factor`` via box averaging.

    Parameters
    ----------
    arr : np.ndarray
        Input array of shape (H, W, C), dtype=uint8.
    factor : int
        Block size (>=1).

    Returns
    -------
    np.ndarray
        uint8 array of shape (ceil(H/f), ceil(W/f), C), values rounded to the
        nearest integer.
    """
    if not isinstance(arr, np.ndarray) or arr.ndim != 3:
        raise ValueError("arr must be an image with shape (H, W, C)")
    if factor < 1:
        raise ValueError("factor must be >= 1")
    if factor == 1:
        return arr.copy()

    padded, (h, w) = _pad_to_multiple(arr.astype(np.float64), factor)
    Hp, Wp, C = padded.shape
    new_h, new_w = Hp // factor, Wp // factor
    sums = padded.reshape(new_h, factor, new_w, factor, C).sum(axis=(1, 3))

    # Pixels actually covered by each block (partial at the bottom/right edge).
    rows = np.minimum(factor, h - np.arange(new_h) * factor)
    cols = np.minimum(factor, w - np.arange(new_w) * factor)
    counts = (rows[:, None] * cols[None, :]).astype(np.float64)

    small = sums / counts[:, :, None]
    return np.clip(np.rint(small), 0, 255).astype(np.uint8)
