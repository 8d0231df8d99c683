"""Direct video→video export using the PixelCrunch engine.

Reads an input video, processes each frame once (no looping), scales it back
to the source size with hard pixel edges, and encodes the result, optionally
remuxing the original audio.

Examples:
  python -m pixelcrunch.video_to_video --input in.mp4 --output out.mp4 \
    --pixel 8 --dither floyd --palette GameBoy --overwrite

Requires: ffmpeg (binary on PATH), ffmpeg-python, OpenCV (opencv-python).
"""
from __future__ import annotations

import argparse
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import cv2  # type: ignore
import numpy as np
import ffmpeg  # type: ignore

from .main import add_params_arguments, configure_logging, params_from_args, validate_params
from .playback import CancellationToken, FrameLoop, iter_capture

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="pixelcrunch-video", description="Process a video to a video using PixelCrunch"
    )
    p.add_argument("--input", required=True, help="Input video file (mp4, etc.)")
    p.add_argument("--output", required=True, help="Output video path (.mp4 or .webm)")
    p.add_argument("--overwrite", action="store_true", help="Overwrite output if exists")
    p.add_argument("--no-audio", action="store_true", help="Do not copy the source audio track")
    add_params_arguments(p)
    return p.parse_args(argv)


def _probe_audio_stream(src: str) -> bool:
    try:
        info = ffmpeg.probe(src)
    except ffmpeg.Error:
        return False
    return any(s.get("codec_type") == "audio" for s in info.get("streams", []))


def _codec_args(out_path: str) -> dict:
    if out_path.lower().endswith(".webm"):
        return dict(vcodec="libvpx-vp9", pix_fmt="yuv420p", crf=30, **{"b:v": 0})
    return dict(vcodec="libx264", pix_fmt="yuv420p", crf=18, preset="medium", movflags="+faststart")


def _open_ffmpeg_pipe(out_path: str, width: int, height: int, fps: float):
    in_stream = ffmpeg.input(
        "pipe:",
        format="rawvideo",
        pix_fmt="rgb24",
        s=f"{width}x{height}",
        framerate=fps,
    )
    out_stream = ffmpeg.output(in_stream, out_path, **_codec_args(out_path))
    out_stream = ffmpeg.overwrite_output(out_stream)
    process = ffmpeg.run_async(out_stream, pipe_stdin=True)
    return process


def _remux_audio(video_path: Path, audio_src: Path) -> None:
    """Copy the audio track of ``audio_src`` into ``video_path`` in place."""
    fd, tmp = tempfile.mkstemp(suffix=video_path.suffix, dir=str(video_path.parent))
    os.close(fd)
    v_in = ffmpeg.input(str(video_path))
    a_in = ffmpeg.input(str(audio_src))
    combined = ffmpeg.output(v_in.video, a_in.audio, tmp, vcodec="copy", acodec="copy", shortest=None)
    try:
        ffmpeg.run(ffmpeg.overwrite_output(combined), capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as ex:
        Path(tmp).unlink(missing_ok=True)
        logger.warning(
            "Audio remux failed; keeping video without audio.\n%s",
            ex.stderr.decode("utf-8", errors="ignore"),
        )
        return
    os.replace(tmp, video_path)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        params = params_from_args(args)
        validate_params(params)
    except (ValueError, KeyError) as e:
        logger.error("Argument error: %s", e)
        return 2

    in_path = Path(args.input)
    out_path = Path(args.output)
    if out_path.exists() and not args.overwrite:
        logger.error("Output exists (use --overwrite): %s", out_path)
        return 2

    cap = cv2.VideoCapture(str(in_path))
    if not cap.isOpened():
        logger.error("Failed to open input: %s", in_path)
        return 2

    fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    try:
        process = _open_ffmpeg_pipe(str(out_path), width, height, fps)
    except FileNotFoundError:
        logger.error("ffmpeg binary not found. Install ffmpeg and ensure it's on PATH.")
        cap.release()
        return 1

    def write_frame(index: int, frame: np.ndarray) -> None:
        process.stdin.write(np.ascontiguousarray(frame[:, :, :3]).tobytes())

    token = CancellationToken()
    loop = FrameLoop(iter_capture(cap), params, write_frame, token=token)
    try:
        written = loop.run()
    except KeyboardInterrupt:
        token.cancel()
        written = loop.rendered
        logger.warning("Interrupted; finishing file with %d frames", written)
    finally:
        process.stdin.close()
        process.wait()
        cap.release()

    if written == 0:
        logger.error("No frames in input video.")
        return 2

    if not args.no_audio and _probe_audio_stream(str(in_path)):
        _remux_audio(out_path, in_path)

    logger.info("Wrote processed video: %s (%d frames, %d skipped)", out_path, written, loop.skipped)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
