"""Ordered/Bayer dithering with variable matrix sizes (2x2, 4x4, 8x8)."""
from __future__ import annotations

import numpy as np

from ..palette import nearest_color_indices
from ..tone import apply_tone

Array = np.ndarray

# Peak-to-peak offset, in 8-bit channel units, at dither_amount == 1.
DITHER_SPREAD = 64.0


def _bayer_matrix(n: int) -> np.ndarray:
    """Generate an n x n Bayer matrix (n must be a power of 2).

    The matrix values range from 0..n*n-1. Typical sizes used are 2, 4, 8.
    """
    if n & (n - 1) != 0 or n <= 0:
        raise ValueError("Bayer size must be a positive power of 2 (e.g., 2, 4, 8)")

    def build(k: int) -> np.ndarray:
        if k == 1:
            return np.array([[0]], dtype=np.int32)
        prev = build(k // 2)
        a = 4 * prev
        return np.block(
            [
                [a + 0, a + 2],
                [a + 3, a + 1],
            ]
        )

    return build(n)


BAYER_2X2 = _bayer_matrix(2)
BAYER_4X4 = _bayer_matrix(4)
BAYER_8X8 = _bayer_matrix(8)
for _m in (BAYER_2X2, BAYER_4X4, BAYER_8X8):
    _m.setflags(write=False)

_MATRICES = {2: BAYER_2X2, 4: BAYER_4X4, 8: BAYER_8X8}


def threshold_map(h: int, w: int, size: int) -> Array:
    """Tile the centered matrix ``t / size**2 - 0.5`` over an h x w grid."""
    M = _MATRICES[size]
    T = M.astype(np.float64) / float(size * size) - 0.5
    ty = (h + size - 1) // size
    tx = (w + size - 1) // size
    return np.tile(T, (ty, tx))[:h, :w]


def dither_bayer(
    work: Array,
    palette: Array,
    size: int = 4,
    amount: float = 1.0,
    brightness: float = 0.0,
    contrast: float = 0.0,
) -> Array:
    """Ordered dithering against an arbitrary palette.

    Each pixel is tone mapped, offset by its threshold cell scaled to
    ``DITHER_SPREAD * amount``, clamped, then matched to the palette.

    Parameters
    ----------
    work : np.ndarray
        Downsampled RGB values (H, W, 3), any numeric dtype.
    palette : np.ndarray
        Palette colors (N, 3), float.
    size : int
        Bayer matrix size: 2, 4 or 8.
    amount : float
        Dither strength in [0, 1].

    Returns
    -------
    np.ndarray
        Palette indices of shape (H, W).
    """
    if size not in _MATRICES:
        raise ValueError("Bayer size must be 2, 4 or 8")
    H, W, _ = work.shape
    toned = apply_tone(work, brightness, contrast)
    offset = threshold_map(H, W, size) * (DITHER_SPREAD * amount)
    toned = np.clip(toned + offset[:, :, None], 0.0, 255.0)
    return nearest_color_indices(toned, palette)
