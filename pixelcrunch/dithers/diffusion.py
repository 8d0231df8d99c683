"""Shared error diffusion loop for Floyd-Steinberg and Atkinson.

The raster-order pass reads values that earlier pixels have already pushed
error into, so it cannot be vectorized; Numba compiles it instead.
"""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from numba import njit

from ..tone import contrast_factor

Array = np.ndarray

# (dx, dy, weight) triples; every target must be later in raster order.
Kernel = Sequence[Tuple[int, int, float]]


@njit(cache=True)
def _tone(v, brightness, factor):
    v = v + brightness
    v = factor * (v - 128.0) + 128.0
    if v < 0.0:
        return 0.0
    if v > 255.0:
        return 255.0
    return v


@njit(cache=True)
def _nearest_index(r, g, b, palette):
    best = 0
    best_dist = np.inf
    for i in range(palette.shape[0]):
        dr = (r - palette[i, 0]) * 0.30
        dg = (g - palette[i, 1]) * 0.59
        db = (b - palette[i, 2]) * 0.11
        dist = dr * dr + dg * dg + db * db
        if dist < best_dist:
            best_dist = dist
            best = i
    return best


@njit(cache=True)
def _diffuse_impl(work, palette, out_idx, dxs, dys, weights, amount, brightness, factor):
    H, W, _ = work.shape
    n = dxs.shape[0]
    for y in range(H):
        for x in range(W):
            r = _tone(work[y, x, 0], brightness, factor)
            g = _tone(work[y, x, 1], brightness, factor)
            b = _tone(work[y, x, 2], brightness, factor)

            k = _nearest_index(r, g, b, palette)
            out_idx[y, x] = k
            pr = palette[k, 0]
            pg = palette[k, 1]
            pb = palette[k, 2]
            work[y, x, 0] = pr
            work[y, x, 1] = pg
            work[y, x, 2] = pb

            err_r = r - pr
            err_g = g - pg
            err_b = b - pb
            for j in range(n):
                nx = x + dxs[j]
                ny = y + dys[j]
                if 0 <= nx < W and 0 <= ny < H:
                    work[ny, nx, 0] += err_r * weights[j] * amount
                    work[ny, nx, 1] += err_g * weights[j] * amount
                    work[ny, nx, 2] += err_b * weights[j] * amount


def diffuse(
    work: Array,
    palette: Array,
    kernel: Kernel,
    amount: float = 1.0,
    brightness: float = 0.0,
    contrast: float = 0.0,
) -> Array:
    """Run error diffusion over ``work`` in place.

    Parameters
    ----------
    work : np.ndarray
        Float64 RGB working buffer (H, W, 3). Overwritten with the chosen
        palette colors; neighbours accumulate error before they are visited.
    palette : np.ndarray
        Palette colors (N, 3), float64.
    kernel : sequence of (dx, dy, weight)
        Error distribution targets relative to the current pixel.

    Returns
    -------
    np.ndarray
        Palette indices of shape (H, W).
    """
    if work.dtype != np.float64 or work.ndim != 3 or work.shape[2] != 3:
        raise ValueError("work must be a float64 array with shape (H, W, 3)")
    H, W, _ = work.shape
    dxs = np.array([k[0] for k in kernel], dtype=np.int64)
    dys = np.array([k[1] for k in kernel], dtype=np.int64)
    weights = np.array([k[2] for k in kernel], dtype=np.float64)
    out_idx = np.zeros((H, W), dtype=np.int64)
    _diffuse_impl(
        work,
        np.ascontiguousarray(palette, dtype=np.float64),
        out_idx,
        dxs,
        dys,
        weights,
        float(amount),
        float(brightness),
        float(contrast_factor(contrast)),
    )
    return out_idx
