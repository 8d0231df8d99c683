"""Exceptions raised by the quantization engine and its helpers."""
from __future__ import annotations


class PixelCrunchError(Exception):
    """Base class for all PixelCrunch errors."""


class InvalidDimensionsError(PixelCrunchError, ValueError):
    """Source width/height is not positive or does not match the source."""


class EmptyPaletteError(PixelCrunchError, ValueError):
    """The palette has no colors to quantize to."""


class InvalidParamsError(PixelCrunchError, ValueError):
    """A processing parameter is outside what the engine can work with."""


__all__ = [
    "PixelCrunchError",
    "InvalidDimensionsError",
    "EmptyPaletteError",
    "InvalidParamsError",
]
