# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Statistics over a thermal sample grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np

from thermocam.consts import DEFAULT_MANUAL_MAX_TEMP, DEFAULT_MANUAL_MIN_TEMP
from thermocam.error import DimensionMismatch, EmptyInputError

__all__ = ["TemperaturePixel", "ThermalStatistics", "as_grid", "extract_statistics"]


@dataclass(frozen=True)
class TemperaturePixel:
    """A single sample of the thermal grid."""

    x: int
    """Column index."""
    y: int
    """Row index."""
    value: float
    """Temperature in Celsius."""

    def __str__(self) -> str:
        return f"[{self.x}, {self.y}]: {self.value}°C"


class ThermalStatistics(NamedTuple):
    max_pixel: TemperaturePixel
    min_pixel: TemperaturePixel
    mean: float


def as_grid(grid: Sequence[float] | np.ndarray, shape: tuple[int, int]) -> np.ndarray:
    """Flatten a temperature grid and check it against its `(rows, cols)` shape."""
    flat = np.asarray(grid, dtype=np.float64).reshape(-1)
    if flat.size == 0:
        raise EmptyInputError()
    rows, cols = shape
    if flat.size != rows * cols:
        raise DimensionMismatch(rows * cols, flat.size)
    return flat


def extract_statistics(
    grid: Sequence[float] | np.ndarray,
    shape: tuple[int, int],
    manual_min_temp: float = DEFAULT_MANUAL_MIN_TEMP,
    manual_max_temp: float = DEFAULT_MANUAL_MAX_TEMP,
) -> ThermalStatistics:
    """Find the hottest and coldest samples and the mean temperature.

    The result matches a single row-major scan where the minimum starts at
    `manual_max_temp` and the maximum at `manual_min_temp`, both at `(0, 0)`,
    and a sample replaces the current extreme when it is `<=` (min) or `>=`
    (max). On ties the last scanned sample wins. NaN samples never become an
    extreme.

    Parameters
    ----------
    grid : Sequence[float] | np.ndarray
        Row-major temperatures in Celsius.
    shape : tuple[int, int]
        Format: (rows, cols).
    manual_min_temp : float, optional
        Seed of the maximum search.
    manual_max_temp : float, optional
        Seed of the minimum search.

    Returns
    -------
    ThermalStatistics
        `(max_pixel, min_pixel, mean)`.

    Raises
    ------
    EmptyInputError
        If the grid is empty.
    DimensionMismatch
        If the grid length is not `rows * cols`.

    Examples
    --------
    >>> max_pixel, min_pixel, mean = extract_statistics([5.0, 9.0, 9.0, 1.0], (2, 2))
    >>> print(max_pixel, min_pixel, mean)
    [0, 1]: 9.0°C [1, 1]: 1.0°C 6.0

    """
    flat = as_grid(grid, shape)
    cols = shape[1]
    valid = ~np.isnan(flat)

    min_pixel = TemperaturePixel(0, 0, manual_max_temp)
    max_pixel = TemperaturePixel(0, 0, manual_min_temp)

    if valid.any():
        lowest = flat[valid].min()
        if lowest <= min_pixel.value:
            min_pixel = _pixel_at(flat, _last_index(flat, lowest), cols)
        highest = flat[valid].max()
        if highest >= max_pixel.value:
            max_pixel = _pixel_at(flat, _last_index(flat, highest), cols)

    mean = float(flat.sum() / flat.size)
    return ThermalStatistics(max_pixel, min_pixel, mean)


def _last_index(flat: np.ndarray, value: float) -> int:
    return int(np.flatnonzero(flat == value)[-1])


def _pixel_at(flat: np.ndarray, index: int, cols: int) -> TemperaturePixel:
    row, col = divmod(index, cols)
    return TemperaturePixel(col, row, float(flat[index]))
