from __future__ import annotations

# Public API.
from .dithers import apply_dither  # noqa: F401
from .engine import output_size, process  # noqa: F401
from .errors import (  # noqa: F401
    EmptyPaletteError,
    InvalidDimensionsError,
    InvalidParamsError,
    PixelCrunchError,
)
from .palette import PALETTES, Palette, get_palette  # noqa: F401
from .params import DEFAULT_PARAMS, DitherMethod, ProcessingParams, load_params  # noqa: F401
from .utils.loader import load_image, save_image  # noqa: F401
from .utils.upscale import upscale_nearest, upscale_to_size  # noqa: F401

__all__ = [
    "apply_dither",
    "process",
    "output_size",
    "PixelCrunchError",
    "InvalidDimensionsError",
    "EmptyPaletteError",
    "InvalidParamsError",
    "Palette",
    "PALETTES",
    "get_palette",
    "DitherMethod",
    "ProcessingParams",
    "DEFAULT_PARAMS",
    "load_params",
    "load_image",
    "save_image",
    "upscale_nearest",
    "upscale_to_size",
]
