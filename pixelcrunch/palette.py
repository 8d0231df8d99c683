"""Palettes: ordered sets of RGB colors the engine quantizes to.

Colors can be given as hex strings (``"#RRGGBB"`` or ``"RRGGBB"``) or as RGB
triples. A color that cannot be parsed degrades to black and logs a warning,
so one bad swatch never loses a whole frame.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

from .errors import EmptyPaletteError

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
ColorLike = Union[str, Sequence[int]]

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)

# Color added by the palette editor's "+" swatch.
DEFAULT_NEW_COLOR = "#888888"
MIN_EDITABLE_COLORS = 2


def parse_color(color: ColorLike) -> RGB:
    """Convert a hex string or RGB triple to an ``(r, g, b)`` tuple.

    Unparsable input returns black.
    """
    if isinstance(color, str):
        m = _HEX_RE.match(color.strip())
        if m is None:
            logger.warning("Unparsable palette color %r, using black", color)
            return (0, 0, 0)
        return (int(m.group(1), 16), int(m.group(2), 16), int(m.group(3), 16))

    try:
        r, g, b = (int(c) for c in color)
    except (TypeError, ValueError):
        logger.warning("Unparsable palette color %r, using black", color)
        return (0, 0, 0)
    if not all(0 <= c <= 255 for c in (r, g, b)):
        logger.warning("Palette color %r out of range, using black", color)
        return (0, 0, 0)
    return (r, g, b)


def to_hex(rgb: RGB) -> str:
    r, g, b = rgb
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class Palette:
    """An ordered, immutable list of colors with a cosmetic name.

    Order matters: when two entries are equally close to a pixel, the one
    listed first wins.
    """

    name: str
    colors: Tuple[RGB, ...]

    @classmethod
    def from_colors(cls, colors: Iterable[ColorLike], name: str = "Custom") -> "Palette":
        return cls(name=name, colors=tuple(parse_color(c) for c in colors))

    def __len__(self) -> int:
        return len(self.colors)

    def to_array(self) -> np.ndarray:
        """Return the colors as a float64 array of shape (N, 3).

        Raises
        ------
        EmptyPaletteError
            If the palette has no colors.
        """
        if not self.colors:
            raise EmptyPaletteError(f"palette {self.name!r} has no colors")
        return np.asarray(self.colors, dtype=np.float64).reshape(-1, 3)

    def hex_colors(self) -> list[str]:
        return [to_hex(c) for c in self.colors]

    # Editing helpers. Each returns a new palette named "Custom".

    def with_color(self, index: int, color: ColorLike) -> "Palette":
        colors = list(self.colors)
        colors[index] = parse_color(color)
        return Palette("Custom", tuple(colors))

    def add_color(self, color: ColorLike = DEFAULT_NEW_COLOR) -> "Palette":
        return Palette("Custom", self.colors + (parse_color(color),))

    def remove_color(self, index: int) -> "Palette":
        """Drop the color at ``index`` unless that would leave fewer than two."""
        if len(self.colors) <= MIN_EDITABLE_COLORS:
            logger.debug("Refusing to remove color from %d-color palette", len(self.colors))
            return self
        colors = list(self.colors)
        del colors[index]
        return Palette("Custom", tuple(colors))


PALETTES: tuple[Palette, ...] = (
    Palette.from_colors(["#EBE5CE", "#1A1A1A"], name="Manga (Ink & Paper)"),
    Palette.from_colors(["#FFFFFF", "#000000"], name="1-Bit Classic"),
    Palette.from_colors(["#9bbc0f", "#8bac0f", "#306230", "#0f380f"], name="GameBoy"),
    Palette.from_colors(["#fdf5e6", "#d2b48c", "#a0522d", "#4b3621"], name="Sepia"),
    Palette.from_colors(["#0d0221", "#261447", "#ff00cc", "#33e1ed"], name="Cyberpunk"),
    Palette.from_colors(["#ffffff", "#ff00ff", "#00ffff", "#000000"], name="Glitch"),
)


def get_palette(name: str) -> Palette:
    """Look up a preset palette by name (case-insensitive)."""
    key = name.strip().lower()
    for p in PALETTES:
        if p.name.lower() == key:
            return p
    names = ", ".join(p.name for p in PALETTES)
    raise KeyError(f"Unknown palette {name!r}. Available: {names}")


def nearest_color_indices(rgb: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Index of the closest palette entry for every pixel.

    Distance is the luma-weighted squared error
    ``(0.30*dr)^2 + (0.59*dg)^2 + (0.11*db)^2``; ``argmin`` keeps the first
    minimum so ties resolve in palette order.

    Parameters
    ----------
    rgb : np.ndarray
        Float array of shape (..., 3).
    palette : np.ndarray
        Float array of shape (N, 3).

    Returns
    -------
    np.ndarray
        Integer array of shape (...).
    """
    best_dist = None
    best_idx = np.zeros(rgb.shape[:-1], dtype=np.intp)
    r = rgb[..., 0]
    g = rgb[..., 1]
    b = rgb[..., 2]
    # Strict "<" so an equal later entry never replaces an earlier one.
    for i, (pr, pg, pb) in enumerate(palette):
        dr = (r - pr) * 0.30
        dg = (g - pg) * 0.59
        db = (b - pb) * 0.11
        dist = dr * dr + dg * dg + db * db
        if best_dist is None:
            best_dist = dist
            continue
        closer = dist < best_dist
        best_idx[closer] = i
        best_dist = np.where(closer, dist, best_dist)
    return best_idx


__all__ = [
    "RGB",
    "Palette",
    "PALETTES",
    "DEFAULT_NEW_COLOR",
    "get_palette",
    "parse_color",
    "to_hex",
    "nearest_color_indices",
]
