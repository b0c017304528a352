# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Per-frame image processing for thermal and camera data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np

from thermocam.color import Color, normalize
from thermocam.consts import DEGENERATE_FRACTION, MAX_MARKER_COLOR, MIN_MARKER_COLOR
from thermocam.decode import decode_frame
from thermocam.error import DegenerateScaleError
from thermocam.fusion import blend
from thermocam.image import ImageBuffer, build_image, draw_marker, marker_position, upscale
from thermocam.log import get_logger
from thermocam.stats import ThermalStatistics, TemperaturePixel, as_grid, extract_statistics

if TYPE_CHECKING:
    from thermocam.decode import RawBuffer
    from thermocam.settings import ProcessingSettings

__all__ = [
    "ThermalFrame",
    "colorize",
    "process_camera_frame",
    "process_thermal_frame",
    "scale_range",
    "temperature_fractions",
]

_logger = get_logger()


@dataclass(frozen=True)
class ThermalFrame:
    """The result of processing one thermal frame."""

    max_pixel: TemperaturePixel
    min_pixel: TemperaturePixel
    mean: float
    scale_min: float
    """Temperature mapped to `min_color`."""
    scale_max: float
    """Temperature mapped to `max_color`."""
    image: ImageBuffer
    """Upscaled false-color image with min/max markers."""

    @property
    def statistics(self) -> ThermalStatistics:
        return ThermalStatistics(self.max_pixel, self.min_pixel, self.mean)


def scale_range(stats: ThermalStatistics, settings: ProcessingSettings) -> tuple[float, float]:
    """Return the `(min, max)` temperatures the gradient spans."""
    if settings.autoscale_enabled:
        return (stats.min_pixel.value, stats.max_pixel.value)
    return (settings.manual_min_temp, settings.manual_max_temp)


def temperature_fractions(temperatures: np.ndarray, min_temp: float, max_temp: float) -> np.ndarray:
    """Normalize temperatures onto the scale, a collapsed scale maps everything to the middle.

    NaN samples stay NaN and are painted with the min color.
    """
    try:
        return normalize(min_temp, max_temp, temperatures)
    except DegenerateScaleError:
        _logger.warning("degenerate_scale", min_temp=min_temp, max_temp=max_temp, fraction=DEGENERATE_FRACTION)
        return np.where(np.isnan(temperatures), np.nan, DEGENERATE_FRACTION)


def colorize(
    grid: Sequence[float] | np.ndarray,
    shape: tuple[int, int],
    settings: ProcessingSettings,
    scale: tuple[float, float],
) -> ImageBuffer:
    """False-color a temperature grid at its native resolution."""
    flat = as_grid(grid, shape)
    fractions = temperature_fractions(flat, *scale)
    colors = settings.gradient.colors_at(fractions)
    rows, cols = shape
    return build_image(colors, cols, rows)


def process_thermal_frame(
    grid: Sequence[float] | np.ndarray,
    shape: tuple[int, int],
    settings: ProcessingSettings,
) -> ThermalFrame:
    """Turn one thermal grid into an annotated, upscaled false-color image.

    Parameters
    ----------
    grid : Sequence[float] | np.ndarray
        Row-major temperatures in Celsius.
    shape : tuple[int, int]
        Format: (rows, cols).
    settings : ProcessingSettings
        A snapshot of the processing settings.

    Returns
    -------
    ThermalFrame
        Statistics and the display image. The coldest sample is marked in
        green, the hottest in white.

    """
    stats = extract_statistics(grid, shape, settings.manual_min_temp, settings.manual_max_temp)
    scale_min, scale_max = scale_range(stats, settings)

    image = colorize(grid, shape, settings, (scale_min, scale_max))

    factor = settings.interpolation_factor
    upscaled = upscale(image, factor)
    draw_marker(*marker_position(stats.min_pixel, factor), Color(*MIN_MARKER_COLOR), upscaled)
    draw_marker(*marker_position(stats.max_pixel, factor), Color(*MAX_MARKER_COLOR), upscaled)

    _logger.debug(
        "thermal_frame_processed",
        min_pixel=str(stats.min_pixel),
        max_pixel=str(stats.max_pixel),
        mean=round(stats.mean, 2),
    )
    return ThermalFrame(
        stats.max_pixel,
        stats.min_pixel,
        stats.mean,
        scale_min,
        scale_max,
        upscaled,
    )


def process_camera_frame(
    data: RawBuffer,
    width: int,
    height: int,
    settings: ProcessingSettings,
    thermal_image: ImageBuffer | None = None,
) -> ImageBuffer:
    """Decode a raw camera frame and blend it with the thermal image.

    Without a thermal image the decoded visible image is returned.
    """
    visible = decode_frame(data, width, height, settings.camera_format, settings.bayer_pattern)
    if thermal_image is None:
        return visible
    return blend(visible, thermal_image, settings.blend_mode, settings.alpha)
