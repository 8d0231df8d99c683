"""Processing parameters and dither method names."""
from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Union

from .errors import InvalidParamsError
from .palette import PALETTES, Palette, get_palette


class DitherMethod(str, Enum):
    """Dithering strategies. Values are the display names."""

    THRESHOLD = "Threshold"
    BAYER_2X2 = "Bayer 2x2"
    BAYER_4X4 = "Bayer 4x4"
    BAYER_8X8 = "Bayer 8x8"
    FLOYD_STEINBERG = "Floyd-Steinberg"
    ATKINSON = "Atkinson"

    @property
    def is_error_diffusion(self) -> bool:
        return self in (DitherMethod.FLOYD_STEINBERG, DitherMethod.ATKINSON)

    @property
    def matrix_size(self) -> int:
        """Bayer matrix edge length, or 0 for non-ordered methods."""
        return _MATRIX_SIZES.get(self, 0)

    @classmethod
    def parse(cls, name: Union[str, "DitherMethod"]) -> "DitherMethod":
        """Accept a member, a display name, or a short CLI alias."""
        if isinstance(name, DitherMethod):
            return name
        key = str(name).strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        for m in cls:
            if m.value.lower() == key or m.name.lower() == key:
                return m
        raise InvalidParamsError(f"Unknown dithering method: {name}")


_MATRIX_SIZES = {
    DitherMethod.BAYER_2X2: 2,
    DitherMethod.BAYER_4X4: 4,
    DitherMethod.BAYER_8X8: 8,
}

_ALIASES = {
    "none": DitherMethod.THRESHOLD,
    "threshold": DitherMethod.THRESHOLD,
    "bayer2": DitherMethod.BAYER_2X2,
    "bayer4": DitherMethod.BAYER_4X4,
    "bayer8": DitherMethod.BAYER_8X8,
    "floyd": DitherMethod.FLOYD_STEINBERG,
    "atkinson": DitherMethod.ATKINSON,
}

DITHER_CHOICES = list(_ALIASES)


@dataclass(frozen=True)
class ProcessingParams:
    """Everything one engine call needs besides the source raster.

    Ranges follow the editor controls: ``pixel_size`` >= 1, ``brightness`` in
    [-100, 100], ``contrast`` inside (-255, 255), ``dither_amount`` in [0, 1].
    Only ``pixel_size`` is enforced by the engine.
    """

    pixel_size: int = 6
    brightness: int = 0
    contrast: float = 20
    dither_method: DitherMethod = DitherMethod.BAYER_4X4
    dither_amount: float = 1.0
    palette: Palette = field(default_factory=lambda: PALETTES[0])

    def __post_init__(self) -> None:
        # Accept display names and aliases at construction too.
        object.__setattr__(self, "dither_method", DitherMethod.parse(self.dither_method))

    def with_changes(self, **changes: Any) -> "ProcessingParams":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pixel_size": self.pixel_size,
            "brightness": self.brightness,
            "contrast": self.contrast,
            "dither_method": self.dither_method.value,
            "dither_amount": self.dither_amount,
            "palette": {"name": self.palette.name, "colors": self.palette.hex_colors()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProcessingParams":
        """Build params from a plain mapping; missing keys keep their defaults.

        ``palette`` may be a preset name, a list of colors, or a mapping with
        ``name`` and ``colors``.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidParamsError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = {}
        for key in ("pixel_size", "brightness"):
            if key in data:
                kwargs[key] = int(data[key])
        for key in ("contrast", "dither_amount"):
            if key in data:
                kwargs[key] = float(data[key])
        if "dither_method" in data:
            kwargs["dither_method"] = DitherMethod.parse(data["dither_method"])
        if "palette" in data:
            kwargs["palette"] = _palette_from_value(data["palette"])
        return cls(**kwargs)


def _palette_from_value(value: Any) -> Palette:
    if isinstance(value, Palette):
        return value
    if isinstance(value, str):
        try:
            return get_palette(value)
        except KeyError as e:
            raise InvalidParamsError(str(e)) from e
    if isinstance(value, Mapping):
        return Palette.from_colors(value.get("colors", []), name=value.get("name", "Custom"))
    return Palette.from_colors(value)


def load_params(path: Union[str, Path]) -> ProcessingParams:
    """Read a JSON parameter file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidParamsError(f"{path}: expected a JSON object")
    return ProcessingParams.from_dict(data)


DEFAULT_PARAMS = ProcessingParams()


__all__ = [
    "DitherMethod",
    "DITHER_CHOICES",
    "ProcessingParams",
    "DEFAULT_PARAMS",
    "load_params",
]
