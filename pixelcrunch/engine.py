"""The quantization engine: one frame in, one palette-quantized raster out.

Stages, all on one working buffer:

1. downsample by ``pixel_size`` (box average)
2. tone map (brightness, then contrast around 128, clamp)
3. dither (none, ordered Bayer, or error diffusion)
4. match each pixel to the nearest palette color

The engine keeps no state between calls. Upscaling the result back to the
source size is left to the caller (see ``utils.upscale.upscale_to_size``).
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .dithers import quantize_indices
from .errors import InvalidDimensionsError, InvalidParamsError
from .params import DitherMethod, ProcessingParams
from .utils.loader import RasterSource, to_rgba
from .utils.pixelate import downscale_block_average, downscaled_size

logger = logging.getLogger(__name__)

Array = np.ndarray


def output_size(source_width: int, source_height: int, pixel_size: int) -> tuple[int, int]:
    """Return ``(width, height)`` of the processed raster."""
    h, w = downscaled_size(source_height, source_width, pixel_size)
    return w, h


def process(
    source: RasterSource,
    params: ProcessingParams,
    source_width: Optional[int] = None,
    source_height: Optional[int] = None,
    out: Optional[Array] = None,
) -> Array:
    """Quantize one image or video frame.

    Parameters
    ----------
    source : np.ndarray | PIL.Image.Image
        Source raster: (H, W), (H, W, 3) or (H, W, 4) array, or a Pillow image.
    params : ProcessingParams
        Pixel size, tone controls, dither method/amount and palette.
    source_width, source_height : int | None
        Declared source size. Defaults to the source's own size; when given,
        both must be positive and match it.
    out : np.ndarray | None
        Optional uint8 buffer of shape (ceil(H/p), ceil(W/p), 4) to write into.

    Returns
    -------
    np.ndarray
        RGBA uint8 raster of shape (ceil(H/p), ceil(W/p), 4). Alpha is 255 and
        every color is an exact palette entry.

    Raises
    ------
    InvalidDimensionsError
        Non-positive or mismatched dimensions, or a wrong-sized ``out``.
    EmptyPaletteError
        The palette has no colors.
    InvalidParamsError
        ``pixel_size`` < 1 or an unknown dither method.
    """
    if (source_width is not None and source_width <= 0) or (
        source_height is not None and source_height <= 0
    ):
        raise InvalidDimensionsError(
            f"source dimensions must be positive, got {source_width}x{source_height}"
        )
    if params.pixel_size < 1:
        raise InvalidParamsError(f"pixel_size must be >= 1, got {params.pixel_size}")

    palette = params.palette.to_array()
    method = DitherMethod.parse(params.dither_method)

    rgba = to_rgba(source)
    H, W = rgba.shape[:2]
    if H == 0 or W == 0:
        raise InvalidDimensionsError(f"source is empty ({W}x{H})")
    if (source_width is not None and source_width != W) or (
        source_height is not None and source_height != H
    ):
        raise InvalidDimensionsError(
            f"declared size {source_width}x{source_height} does not match source {W}x{H}"
        )

    out_w, out_h = output_size(W, H, params.pixel_size)
    if out is not None and (out.shape != (out_h, out_w, 4) or out.dtype != np.uint8):
        raise InvalidDimensionsError(
            f"out buffer must be uint8 with shape {(out_h, out_w, 4)}, got {out.dtype} {out.shape}"
        )

    small = downscale_block_average(rgba[:, :, :3], params.pixel_size)
    work = small.astype(np.float64)
    idx = quantize_indices(
        work,
        palette,
        method,
        amount=params.dither_amount,
        brightness=params.brightness,
        contrast=params.contrast,
    )
    logger.debug(
        "Processed %dx%d -> %dx%d (%s, %d colors)",
        W, H, out_w, out_h, method.value, len(palette),
    )

    if out is None:
        out = np.empty((out_h, out_w, 4), dtype=np.uint8)
    out[:, :, :3] = palette.astype(np.uint8)[idx]
    out[:, :, 3] = 255
    return out


__all__ = ["process", "output_size"]
