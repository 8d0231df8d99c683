"""Command-line entry point for PixelCrunch.

This tool loads an image, pixelates it to a coarse grid, applies
brightness/contrast, quantizes it to a small palette with the selected
dithering method, scales it back up with hard pixel edges, and saves it.

All processing occurs on NumPy arrays; Pillow is used only for
loading and saving.

Usage example:
    python -m pixelcrunch.main -i input.png -o output.png --pixel 6 --dither bayer4 --palette GameBoy
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from PIL import UnidentifiedImageError

from .engine import process
from .errors import PixelCrunchError
from .palette import PALETTES, Palette, get_palette
from .params import DITHER_CHOICES, ProcessingParams, load_params
from .utils.loader import load_image, save_image
from .utils.upscale import upscale_to_size

logger = logging.getLogger(__name__)


def add_params_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the processing-parameter flags shared by all commands."""
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON file with processing parameters; flags below override it",
    )
    parser.add_argument("--pixel", type=int, default=None, help="Pixel block size (>=1). Default: 6")
    parser.add_argument(
        "--brightness", type=int, default=None, help="Brightness offset, -100..100. Default: 0"
    )
    parser.add_argument(
        "--contrast", type=float, default=None, help="Contrast, -100..100 typical. Default: 20"
    )
    parser.add_argument(
        "--dither",
        type=str,
        default=None,
        choices=DITHER_CHOICES,
        help="Dithering method: " + " | ".join(DITHER_CHOICES) + ". Default: bayer4",
    )
    parser.add_argument(
        "--amount", type=float, default=None, help="Dither strength, 0..1. Default: 1"
    )
    parser.add_argument(
        "--palette",
        type=str,
        default=None,
        help="Preset palette name: " + ", ".join(repr(p.name) for p in PALETTES),
    )
    parser.add_argument(
        "--colors",
        type=str,
        nargs="+",
        default=None,
        help="Custom palette as hex colors (e.g. '#000000' '#ffffff'); overrides --palette",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] | None
        Optional list of arguments for testing. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="pixelcrunch",
        description=(
            "Turn an image into limited-palette pixel art: downsample, adjust "
            "tone, dither, and quantize to a fixed palette."
        ),
    )

    parser.add_argument("-i", "--input", required=True, help="Path to input image file")
    parser.add_argument("-o", "--output", required=True, help="Path to output image file")
    parser.add_argument(
        "--no-upscale",
        action="store_true",
        help="Save the reduced-size raster instead of scaling back to the input size",
    )
    add_params_arguments(parser)

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def params_from_args(ns: argparse.Namespace) -> ProcessingParams:
    """Build ProcessingParams from ``--config`` plus any overriding flags."""
    params = load_params(ns.config) if ns.config else ProcessingParams()

    changes = {}
    if ns.pixel is not None:
        changes["pixel_size"] = ns.pixel
    if ns.brightness is not None:
        changes["brightness"] = ns.brightness
    if ns.contrast is not None:
        changes["contrast"] = ns.contrast
    if ns.dither is not None:
        changes["dither_method"] = ns.dither
    if ns.amount is not None:
        changes["dither_amount"] = ns.amount
    if ns.colors:
        changes["palette"] = Palette.from_colors(ns.colors)
    elif ns.palette:
        changes["palette"] = get_palette(ns.palette)
    return params.with_changes(**changes)


def validate_params(params: ProcessingParams) -> None:
    """Reject values outside the ranges the controls allow.

    Raises
    ------
    ValueError
        On the first out-of-range value.
    """
    if params.pixel_size < 1:
        raise ValueError("--pixel must be an integer >= 1")
    if not -100 <= params.brightness <= 100:
        raise ValueError("--brightness must be within -100..100")
    if not -255 < params.contrast < 255:
        raise ValueError("--contrast must be within (-255, 255)")
    if not 0.0 <= params.dither_amount <= 1.0:
        raise ValueError("--amount must be within 0..1")
    if len(params.palette) < 1:
        raise ValueError("palette needs at least one color")


def validate_args(ns: argparse.Namespace) -> None:
    """Validate argument values and raise ValueError for invalid inputs.

    Parameters
    ----------
    ns : argparse.Namespace
        Parsed CLI arguments.
    """
    if not Path(ns.input).exists():
        raise ValueError(f"Input file not found: {ns.input}")
    if ns.config and not Path(ns.config).exists():
        raise ValueError(f"Config file not found: {ns.config}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry function for the CLI.

    Parameters
    ----------
    argv : list[str] | None
        Optional list of arguments for testing.

    Returns
    -------
    int
        Exit status code (0 for success, non-zero for failure).
    """
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        validate_args(args)
        params = params_from_args(args)
        validate_params(params)
    except (ValueError, KeyError) as e:
        logger.error("Argument error: %s", e)
        return 2

    # 1) Load (Pillow -> NumPy RGBA uint8)
    try:
        img = load_image(args.input)
    except (OSError, UnidentifiedImageError) as e:
        logger.error("Failed to read %s: %s", args.input, e)
        return 1
    h, w = img.shape[:2]

    # 2) Quantize at block resolution
    try:
        small = process(img, params)
    except PixelCrunchError as e:
        logger.error("Processing failed: %s", e)
        return 1

    # 3) Back to the input size with hard edges
    out = small if args.no_upscale else upscale_to_size(small, h, w, block=params.pixel_size)

    # 4) Save (NumPy -> Pillow)
    save_image(out, args.output)
    logger.info("Wrote %s (%dx%d, %s)", args.output, out.shape[1], out.shape[0], params.dither_method.value)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
