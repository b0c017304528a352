import threading
import time
from unittest.mock import MagicMock

import numpy as np
import pytest

from thermocam.decode import CameraFormat
from thermocam.settings import ProcessingSettings, SettingsStore
from thermocam.thread import PipelineFrame, PipelineThread


class CountingThermalSource:
    """Returns a 2x2 grid whose hottest pixel is 10 + the number of reads."""

    def __init__(self, period: float = 0.01, failures: int = 0):
        self.period = period
        self.failures = failures
        self.count = 0

    def read(self):
        time.sleep(self.period)
        if self.failures > 0:
            self.failures -= 1
            return [], (0, 0)
        self.count += 1
        return np.array([0.0, 0.0, 0.0, 10.0 + self.count]), (2, 2)


class StaticCameraSource:
    def read(self):
        return bytes([90] * 16 + [128] * 8), (4, 4)


def wait_for(predicate, timeout: float = 2.0) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def store() -> SettingsStore:
    return SettingsStore(ProcessingSettings(interpolation_factor=2, camera_format=CameraFormat.YUV420))


@pytest.fixture
def pipeline(store):
    pipeline = PipelineThread(CountingThermalSource(), store)
    yield pipeline
    pipeline.stop()


class TestPipelineThread:
    def test_init(self, store):
        pipeline = PipelineThread(CountingThermalSource(), store)
        assert pipeline.is_running is False
        assert pipeline.last_data is None
        assert pipeline.camera_source is None

    def test_read_before_start(self, pipeline):
        with pytest.raises(RuntimeError, match="Thread not started"):
            pipeline.read()

    def test_start_stop(self, pipeline):
        pipeline.start()
        assert pipeline.is_running
        worker = pipeline._worker_thread
        assert worker is not None and worker.is_alive()

        # idempotent start
        pipeline.start()
        assert pipeline._worker_thread is worker

        pipeline.stop()
        assert not pipeline.is_running
        assert not worker.is_alive()

        # idempotent stop
        pipeline.stop()

    def test_read_consumes_latest(self, pipeline):
        pipeline.start()
        assert wait_for(lambda: pipeline.last_data is not None)

        frame = pipeline.read()
        assert isinstance(frame, PipelineFrame)
        assert frame.fused is None
        assert frame.thermal.image.shape == (4, 4)

        assert wait_for(lambda: pipeline.last_data is not None)
        newer = pipeline.read()
        assert newer.thermal.max_pixel.value > frame.thermal.max_pixel.value

    def test_on_data_and_camera(self, store):
        on_data = MagicMock()
        pipeline = PipelineThread(CountingThermalSource(), store, StaticCameraSource(), on_data)
        pipeline.start()
        try:
            assert wait_for(lambda: on_data.call_count >= 2)
        finally:
            pipeline.stop()

        frame = on_data.call_args_list[0].args[0]
        assert frame.fused is not None
        assert frame.fused.shape == (4, 4)

    def test_settings_snapshot_per_frame(self, store):
        pipeline = PipelineThread(CountingThermalSource(period=0), store)
        first = pipeline.process_once()
        store.update(interpolation_factor=3)
        second = pipeline.process_once()
        assert first.thermal.image.shape == (4, 4)
        assert second.thermal.image.shape == (6, 6)

    def test_pipeline_error_drops_frame(self, store):
        source = CountingThermalSource(failures=2)
        pipeline = PipelineThread(source, store)
        pipeline.start()
        try:
            assert wait_for(lambda: pipeline.last_data is not None)
            assert pipeline.is_running
        finally:
            pipeline.stop()
        assert source.failures == 0

    def test_blend_mode_by_value_while_running(self, store):
        pipeline = PipelineThread(CountingThermalSource(), store, StaticCameraSource())
        pipeline.start()
        try:
            store.set_blend_mode("thermal_only")
            assert wait_for(lambda: pipeline.last_data is not None)
            pipeline.read()
            assert wait_for(lambda: pipeline.last_data is not None)
            assert pipeline.is_running
            frame = pipeline.read()
        finally:
            pipeline.stop()
        assert np.array_equal(frame.fused.data, frame.thermal.image.data)

    def test_invalid_camera_size_drops_frames(self, store):
        camera = MagicMock()
        camera.read.return_value = (bytes(64), (3, 4))
        pipeline = PipelineThread(CountingThermalSource(), store, camera)
        pipeline.start()
        try:
            assert wait_for(lambda: camera.read.call_count >= 3)
            assert pipeline.is_running
            assert pipeline.last_data is None
        finally:
            pipeline.stop()

    def test_unexpected_error_stops_loop(self, store):
        source = MagicMock()
        source.read.side_effect = OSError("sensor unplugged")
        pipeline = PipelineThread(source, store)

        errors = []
        original_hook = threading.excepthook
        threading.excepthook = lambda args: errors.append(args.exc_type)
        try:
            pipeline.start()
            assert wait_for(lambda: not pipeline.is_running)
            pipeline.stop()
        finally:
            threading.excepthook = original_hook
        assert errors == [OSError]

    def test_slow_consumer_misses_frames(self, store):
        pipeline = PipelineThread(CountingThermalSource(period=0.005), store)
        pipeline.start()
        try:
            time.sleep(0.2)
            frame = pipeline.read()
        finally:
            pipeline.stop()
        assert frame is not None
        # an older frame was overwritten
        assert frame.thermal.max_pixel.value > 11.0
