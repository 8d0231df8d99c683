"""Image loading and saving utilities using Pillow, with NumPy arrays.

All processing in this project occurs on NumPy arrays. These helpers
only convert between Pillow images and NumPy ``uint8`` arrays for IO.
"""
from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from ..errors import InvalidDimensionsError

Array = np.ndarray
RasterSource = Union[Array, Image.Image]


def load_image(path: Union[str, Path]) -> Array:
    """Load an image file into an RGBA NumPy array (uint8).

    Parameters
    ----------
    path : str | Path
        Path to an image supported by Pillow.

    Returns
    -------
    np.ndarray
        Array of shape (H, W, 4), dtype=uint8, in RGBA order.
    """
    p = Path(path)
    with Image.open(p) as im:
        im = im.convert("RGBA")
        arr = np.array(im, dtype=np.uint8)
    return arr


def save_image(arr: Array, path: Union[str, Path]) -> None:
    """Save an RGB or RGBA NumPy array (uint8) to an image file via Pillow.

    Parameters
    ----------
    arr : np.ndarray
        Array of shape (H, W, 3) or (H, W, 4), dtype=uint8.
    path : str | Path
        Output file path. The format is inferred from the extension.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError("arr must be a NumPy array")
    if arr.dtype != np.uint8:
        raise TypeError("arr must have dtype=uint8")
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError("arr must have shape (H, W, 3) or (H, W, 4)")

    p = Path(path)
    im = Image.fromarray(arr)
    if im.mode == "RGBA" and p.suffix.lower() in (".jpg", ".jpeg", ".bmp"):
        im = im.convert("RGB")
    im.save(p)


def to_rgba(source: RasterSource) -> Array:
    """Normalize a raster source to a (H, W, 4) uint8 array.

    Accepts Pillow images and arrays shaped (H, W), (H, W, 3) or (H, W, 4).
    Missing alpha is filled with 255. Arrays that are already RGBA uint8 are
    returned as-is (no copy).
    """
    if isinstance(source, Image.Image):
        return np.array(source.convert("RGBA"), dtype=np.uint8)

    arr = np.asarray(source)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidDimensionsError(f"unsupported source shape {arr.shape}")
    if arr.dtype != np.uint8:
        arr = np.clip(np.rint(arr), 0, 255).astype(np.uint8)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr
