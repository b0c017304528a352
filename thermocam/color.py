# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""False-color mapping for temperature data."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np

from thermocam.consts import LEGEND_STEPS, LEGEND_WIDTH
from thermocam.error import DegenerateScaleError

if TYPE_CHECKING:
    from thermocam.image import ImageBuffer

__all__ = [
    "Color",
    "Gradient",
    "discrete_blend",
    "legend_image",
    "lerp",
    "lerp_array",
    "normalize",
]


@dataclass(frozen=True)
class Color:
    """An 8-bit RGB color."""

    r: int
    g: int
    b: int

    def __post_init__(self):
        for name, value in (("r", self.r), ("g", self.g), ("b", self.b)):
            if not 0 <= value <= 255:
                raise ValueError(f"Color channel {name} out of range: {value}")

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> Color:
        """Create a color from an `(r, g, b)` sequence."""
        if len(values) != 3:
            raise ValueError(f"Color needs 3 channels, got {len(values)}")
        r, g, b = (int(v) for v in values)
        return cls(r, g, b)

    def to_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_array(self) -> np.ndarray:
        return np.array(self.to_tuple(), dtype=np.uint8)


def lerp(color1: Color, color2: Color, fraction: float) -> Color:
    """Linearly interpolate between two colors.

    Fractions below 0 return `color1`, fractions above 1 return `color2`.
    A NaN fraction (an invalid sample) also returns `color1`. Channels are
    truncated, not rounded.

    Examples
    --------
    >>> lerp(Color(0, 0, 255), Color(255, 0, 0), 0.5)
    Color(r=127, g=0, b=127)

    """
    if fraction < 0 or math.isnan(fraction):
        return color1
    if fraction > 1:
        return color2

    channels = (
        int((c2 - c1) * fraction + c1)
        for c1, c2 in zip(color1.to_tuple(), color2.to_tuple())
    )
    return Color(*channels)


def lerp_array(color1: Color, color2: Color, fractions: np.ndarray) -> np.ndarray:
    """Vectorized `lerp`, return an uint8 array of shape `fractions.shape + (3,)`."""
    fractions = np.asarray(fractions, dtype=np.float64)
    fractions = np.clip(np.nan_to_num(fractions, nan=0.0), 0.0, 1.0)
    c1 = np.array(color1.to_tuple(), dtype=np.float64)
    c2 = np.array(color2.to_tuple(), dtype=np.float64)
    colors = (c2 - c1) * fractions[..., np.newaxis] + c1
    return colors.astype(np.uint8)


def normalize(min_temp, max_temp, value):
    """Map `value` onto the unit range spanned by `min_temp` and `max_temp`.

    Works on scalars and numpy arrays. Values outside the range map outside
    `[0, 1]`, `lerp` clamps them.

    Raises
    ------
    DegenerateScaleError
        If `min_temp == max_temp`.

    """
    if max_temp == min_temp:
        raise DegenerateScaleError(min_temp)
    return (value - min_temp) / (max_temp - min_temp)


def discrete_blend(color1: Color, color2: Color, steps: int) -> list[Color]:
    """Sample `steps` colors at fractions `k / steps` for `k` in `[0, steps)`.

    The last sample is taken at `(steps - 1) / steps`, so it never equals `color2`.
    """
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")
    return [lerp(color1, color2, k / steps) for k in range(steps)]


@dataclass(frozen=True)
class Gradient:
    """A two-stop linear gradient."""

    min_color: Color
    max_color: Color

    def color_at(self, fraction: float) -> Color:
        return lerp(self.min_color, self.max_color, fraction)

    def colors_at(self, fractions: np.ndarray) -> np.ndarray:
        return lerp_array(self.min_color, self.max_color, fractions)

    def stops(self, steps: int) -> list[Color]:
        return discrete_blend(self.min_color, self.max_color, steps)


def legend_image(
    gradient: Gradient,
    steps: int = LEGEND_STEPS,
    width: int = LEGEND_WIDTH,
    height: int | None = None,
) -> ImageBuffer:
    """Render the gradient as a vertical color scale, min color on top.

    Parameters
    ----------
    gradient : Gradient
        The gradient to render.
    steps : int, optional
        Number of discrete stops, by default 100.
    width : int, optional
        Width of the strip in pixels, by default 10.
    height : int | None, optional
        Height of the strip in pixels. If None, one pixel per stop.

    Returns
    -------
    ImageBuffer
        The legend strip.

    """
    from thermocam.image import build_image, resize_nearest

    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")
    strip = build_image(gradient.stops(steps), 1, steps)
    return resize_nearest(strip, width, steps if height is None else height)
