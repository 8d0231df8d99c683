"""Repeated engine invocation: a paced frame loop and a latest-wins preview.

Neither class touches pixels itself; both call ``engine.process`` once per
frame and hand the upscaled result to a caller-supplied sink. Cancellation is
explicit through ``CancellationToken``.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Iterator, Optional

import cv2  # type: ignore
import numpy as np

from .engine import process
from .errors import PixelCrunchError
from .params import ProcessingParams
from .utils.upscale import upscale_to_size

logger = logging.getLogger(__name__)

Array = np.ndarray
FrameSink = Callable[[int, Array], None]


class CancellationToken:
    """Thread-safe one-way flag checked between frames."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
        return self._event.wait(timeout)


def render_frame(frame: Array, params: ProcessingParams) -> Array:
    """Process one frame and scale it back to the frame's own size."""
    h, w = frame.shape[:2]
    small = process(frame, params)
    return upscale_to_size(small, h, w, block=params.pixel_size)


def iter_capture(cap: "cv2.VideoCapture", loop: bool = False) -> Iterator[Array]:
    """Yield RGB frames from an OpenCV capture, rewinding at the end if ``loop``."""
    while True:
        ok, bgr = cap.read()
        if not ok:
            if loop and cap.set(cv2.CAP_PROP_POS_FRAMES, 0):
                ok, bgr = cap.read()
            if not ok:
                return
        yield cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


class FrameLoop:
    """Process a stream of frames until it ends or the token is cancelled.

    ``params`` may be swapped between frames with ``update_params``; each
    frame uses whatever params were current when it started. Frames that fail
    with a ``PixelCrunchError`` are logged and skipped.
    """

    def __init__(
        self,
        frames: Iterable[Array],
        params: ProcessingParams,
        sink: FrameSink,
        fps: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.frames = frames
        self.sink = sink
        self.fps = fps
        self.token = token or CancellationToken()
        self._params = params
        self._lock = threading.Lock()
        self.rendered = 0
        self.skipped = 0

    @property
    def params(self) -> ProcessingParams:
        with self._lock:
            return self._params

    def update_params(self, params: ProcessingParams) -> None:
        with self._lock:
            self._params = params

    def cancel(self) -> None:
        self.token.cancel()

    def run(self) -> int:
        """Run to completion on the calling thread; return frames rendered."""
        interval = 1.0 / self.fps if self.fps else 0.0
        next_due = time.monotonic()
        for index, frame in enumerate(self.frames):
            if self.token.cancelled:
                break
            started = time.monotonic()
            try:
                out = render_frame(frame, self.params)
            except PixelCrunchError as e:
                logger.warning("Skipping frame %d: %s", index, e)
                self.skipped += 1
                continue
            self.sink(index, out)
            self.rendered += 1
            logger.debug("Frame %d rendered in %.1f ms", index, (time.monotonic() - started) * 1000)

            if interval:
                next_due += interval
                delay = next_due - time.monotonic()
                if delay > 0:
                    if self.token.wait(delay):
                        break
                else:
                    # Running behind; don't try to catch up with a burst.
                    next_due = time.monotonic()
        return self.rendered

    def start(self) -> threading.Thread:
        """Run on a daemon thread and return it."""
        t = threading.Thread(target=self.run, name="pixelcrunch-frame-loop", daemon=True)
        t.start()
        return t


class PreviewRenderer:
    """Re-render a still source whenever params change, keeping only the latest.

    ``request`` never blocks: it stores the params as the pending job and wakes
    the worker. A request arriving while another is pending replaces it, so a
    burst of slider moves renders at most once after the current frame.
    ``on_result`` receives ``(params, image)`` on the worker thread;
    ``on_error`` receives the exception if a render fails.
    """

    def __init__(
        self,
        source: Array,
        on_result: Callable[[ProcessingParams, Array], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.source = source
        self.on_result = on_result
        self.on_error = on_error
        self._pending: Optional[ProcessingParams] = None
        self._cond = threading.Condition()
        self._busy = False
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="pixelcrunch-preview", daemon=True)
        self._worker.start()

    def request(self, params: ProcessingParams) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("renderer is closed")
            if self._pending is not None:
                logger.debug("Dropping stale preview request")
            self._pending = params
            self._cond.notify()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is pending or rendering. Return False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout)

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._pending = None
            self._cond.notify_all()
        self._worker.join()

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending is not None or self._closed)
                if self._closed:
                    return
                params = self._pending
                self._pending = None
                self._busy = True
            try:
                self._render(params)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def _render(self, params: ProcessingParams) -> None:
        try:
            image = render_frame(self.source, params)
        except Exception as e:
            logger.warning("Preview render failed: %s", e)
            if self.on_error is not None:
                try:
                    self.on_error(e)
                except Exception:
                    logger.exception("Preview error callback failed")
            return

        # A newer request supersedes this result.
        with self._cond:
            if self._pending is not None:
                return
        try:
            self.on_result(params, image)
        except Exception:
            logger.exception("Preview result callback failed")


__all__ = [
    "CancellationToken",
    "FrameLoop",
    "PreviewRenderer",
    "iter_capture",
    "render_frame",
]
