"""Utility functions for PixelCrunch.

Modules:
- loader: Load/save Pillow <-> NumPy conversion utilities.
- pixelate: Box-average downscaling to the block grid.
- upscale: Nearest-neighbor upscaling back to display size.
- resize: Nearest-neighbor resizing to arbitrary sizes.
"""
from .loader import load_image, save_image, to_rgba
from .pixelate import downscale_block_average, downscaled_size
from .upscale import upscale_nearest, upscale_to_size
from .resize import resize_nearest

__all__ = [
    "load_image",
    "save_image",
    "to_rgba",
    "downscale_block_average",
    "downscaled_size",
    "upscale_nearest",
    "upscale_to_size",
    "resize_nearest",
]
