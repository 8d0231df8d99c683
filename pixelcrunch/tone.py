"""Brightness/contrast tone mapping applied before palette matching."""
from __future__ import annotations

import numpy as np

Array = np.ndarray


def contrast_factor(contrast: float) -> float:
    """Contrast curve multiplier; 1.0 at ``contrast == 0``."""
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def apply_tone(values: Array, brightness: float, contrast: float) -> Array:
    """Shift by ``brightness``, stretch around 128 by the contrast factor, clamp.

    Works on any float or integer array and returns float64 in [0, 255].
    """
    v = np.asarray(values, dtype=np.float64) + brightness
    v = contrast_factor(contrast) * (v - 128.0) + 128.0
    return np.clip(v, 0.0, 255.0)


__all__ = ["contrast_factor", "apply_tone"]
