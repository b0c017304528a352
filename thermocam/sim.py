# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Acquisition collaborators replaying recorded data."""

from __future__ import annotations

import itertools
import time
from pathlib import Path

import numpy as np

from thermocam.consts import THERMAL_FRAME_PERIOD
from thermocam.error import EmptyInputError
from thermocam.log import get_logger

__all__ = ["RawFileCameraSource", "SimulatedThermalSource", "load_simulation_data"]


def load_simulation_data(path: str | Path) -> np.ndarray:
    """Load recorded temperatures from a `.npy` file.

    Returns
    -------
    np.ndarray
        float32 array of shape `(frames, rows, cols)`; a single 2D frame is
        returned as a stack of one.

    """
    data = np.load(Path(path), allow_pickle=False).astype(np.float32)
    if data.ndim == 2:
        data = data[np.newaxis]
    if data.ndim != 3:
        raise ValueError(f"Simulation data must be 2D or 3D, got shape {data.shape}")
    if data.size == 0:
        raise EmptyInputError()
    get_logger().info("load_simulation_data", path=str(path), frames=data.shape[0], shape=data.shape[1:])
    return data


class SimulatedThermalSource:
    """Replays recorded frames in a loop at the sensor's frame period."""

    def __init__(self, data: np.ndarray | str | Path, period: float = THERMAL_FRAME_PERIOD):
        if isinstance(data, (str, Path)):
            data = load_simulation_data(data)
        elif data.ndim == 2:
            data = data[np.newaxis]
        self.frames = data
        self.period = period
        self._cycle = itertools.cycle(range(data.shape[0]))

    @property
    def shape(self) -> tuple[int, int]:
        """Format: (rows, cols)."""
        return (self.frames.shape[1], self.frames.shape[2])

    def read(self) -> tuple[np.ndarray, tuple[int, int]]:
        if self.period > 0:
            time.sleep(self.period)
        frame = self.frames[next(self._cycle)]
        return frame.reshape(-1), self.shape


class RawFileCameraSource:
    """Replays a raw camera dump file, one frame per read."""

    def __init__(self, path: str | Path, width: int, height: int):
        self.path = Path(path)
        self.width = width
        self.height = height
        self.data = self.path.read_bytes()

    def read(self) -> tuple[bytes, tuple[int, int]]:
        return self.data, (self.width, self.height)
