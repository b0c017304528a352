# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Background acquisition-and-processing worker."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, Sequence

from structlog.contextvars import bound_contextvars

from thermocam.error import ThermocamError
from thermocam.log import get_logger
from thermocam.proc import ThermalFrame, process_camera_frame, process_thermal_frame

if TYPE_CHECKING:
    import numpy as np

    from thermocam.decode import RawBuffer
    from thermocam.image import ImageBuffer
    from thermocam.settings import SettingsStore

__all__ = ["CameraSource", "PipelineFrame", "PipelineThread", "ThermalSource"]


class ThermalSource(Protocol):
    def read(self) -> tuple[Sequence[float] | np.ndarray, tuple[int, int]]:
        """Block until the next frame is ready, return `(grid, (rows, cols))`."""
        ...


class CameraSource(Protocol):
    def read(self) -> tuple[RawBuffer, tuple[int, int]]:
        """Return the next raw frame as `(data, (width, height))`."""
        ...


@dataclass(frozen=True)
class PipelineFrame:
    thermal: ThermalFrame
    fused: ImageBuffer | None = None
    """The decoded camera frame blended with the thermal image, if a camera is attached."""


class PipelineThread:
    def __init__(
        self,
        thermal_source: ThermalSource,
        settings: SettingsStore,
        camera_source: CameraSource | None = None,
        on_data: Callable[[PipelineFrame], None] | None = None,
    ):
        """Thread running the acquire-process loop.

        Each iteration waits for a thermal frame, takes one settings snapshot,
        processes the thermal frame and, if a camera is attached, the camera
        frame, then publishes the result. Frames are never queued: `read`
        returns the latest unread result and a slow consumer simply misses
        frames.

        Parameters
        ----------
        thermal_source : ThermalSource
            Supplies temperature grids.
        settings : SettingsStore
            The shared processing settings.
        camera_source : CameraSource, optional
            Supplies raw visible-light frames.
        on_data : Callable, optional
            Called in the worker thread with every processed frame.

        """
        self.thermal_source = thermal_source
        self.camera_source = camera_source
        self.settings = settings
        self.on_data = on_data
        self.last_data: PipelineFrame | None = None

        self._logger = get_logger()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stop_event.set()
        self._worker_thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._worker_thread = threading.Thread(target=self._process_loop, name="ThermocamPipeline", daemon=True)
        self._worker_thread.start()
        self._logger.info("pipeline_started", camera=self.camera_source is not None)

    def stop(self) -> None:
        self._stop_event.set()
        if self._worker_thread and self._worker_thread is not threading.current_thread():
            self._worker_thread.join()
        self._worker_thread = None
        self._logger.info("pipeline_stopped")

    def read(self) -> PipelineFrame | None:
        """Return the latest processed frame, or None if none arrived since the last call.

        Raises
        ------
        RuntimeError
            If the thread is not started.

        """
        if not self.is_running:
            raise RuntimeError("Thread not started. Call `start()` before reading data.")
        with self._lock:
            frame = self.last_data
            self.last_data = None
        return frame

    def process_once(self) -> PipelineFrame:
        """Acquire and process a single frame in the calling thread."""
        grid, shape = self.thermal_source.read()
        settings = self.settings.snapshot()

        thermal = process_thermal_frame(grid, shape, settings)
        fused = None
        if self.camera_source is not None:
            data, (width, height) = self.camera_source.read()
            fused = process_camera_frame(data, width, height, settings, thermal.image)
        return PipelineFrame(thermal, fused)

    def _process_loop(self) -> None:
        frame_number = 0
        while not self._stop_event.is_set():
            frame_number += 1
            with bound_contextvars(frame=frame_number):
                try:
                    frame = self.process_once()
                except ThermocamError as e:
                    self._logger.warning("frame_dropped", error=str(e))
                    continue
                except Exception:
                    self._stop_event.set()
                    raise

            with self._lock:
                self.last_data = frame
            if self.on_data is not None:
                try:
                    self.on_data(frame)
                except Exception:
                    self._stop_event.set()
                    raise
