"""Process a video into a PNG frame sequence using the PixelCrunch engine.

Reads frames via OpenCV, converts to RGB NumPy arrays, runs each through the
engine, scales back to the source size, and writes numbered PNGs into an
output directory.

This is sequential and simple: good for offline batch processing.
"""
from __future__ import annotations

import argparse
import itertools
import logging
from pathlib import Path
from typing import Optional

import numpy as np
import cv2
from PIL import Image

from .main import add_params_arguments, configure_logging, params_from_args, validate_params
from .playback import FrameLoop, iter_capture

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Process video frames to PNG using PixelCrunch")
    p.add_argument("-i", "--input", required=True, help="Input video path")
    p.add_argument("-o", "--outdir", required=True, help="Output directory for PNG frames")
    p.add_argument("--start", type=int, default=0, help="Start frame index (default 0)")
    p.add_argument("--end", type=int, default=None, help="End frame index (exclusive). Default: till end")
    add_params_arguments(p)
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        params = params_from_args(args)
        validate_params(params)
    except (ValueError, KeyError) as e:
        logger.error("Argument error: %s", e)
        return 2

    cap = cv2.VideoCapture(str(args.input))
    if not cap.isOpened():
        logger.error("Failed to open video: %s", args.input)
        return 2

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    start = max(0, int(args.start))
    end = None if args.end is None else int(args.end)
    frames = itertools.islice(iter_capture(cap), start, end)

    def write_png(index: int, frame: np.ndarray) -> None:
        # Save as PNG: frame_{:06d}.png, numbered by source frame index
        png_path = outdir / f"frame_{start + index:06d}.png"
        Image.fromarray(np.ascontiguousarray(frame[:, :, :3])).save(png_path)

    try:
        written = FrameLoop(frames, params, write_png).run()
    finally:
        cap.release()

    logger.info("Wrote %d frames to %s", written, outdir)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
