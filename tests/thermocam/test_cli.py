import json

import numpy as np
import pytest
from PIL import Image

from thermocam.__main__ import build_settings, main, parse_args
from thermocam.decode import CameraFormat
from thermocam.fusion import BlendMode
from thermocam.log import setup_standard_logger


@pytest.fixture
def data_file(tmp_path):
    grid = np.linspace(15.0, 30.0, 24 * 32, dtype=np.float32).reshape(24, 32)
    path = tmp_path / "flir_f32.npy"
    np.save(path, grid)
    return path


class TestParseArgs:
    def test_defaults(self, data_file):
        args = parse_args([str(data_file)])
        settings = build_settings(args)
        assert settings.autoscale_enabled is True
        assert settings.interpolation_factor == 6

    def test_flags_override_config(self, tmp_path, data_file):
        config = tmp_path / "settings.yaml"
        config.write_text("processing:\n  interpolation_factor: 4\n  alpha: 0.2\n", encoding="utf-8")
        args = parse_args(
            [str(data_file), "-d", "-c", str(config), "--blend-mode", "thermal_only", "--camera-format", "yuyv"],
        )
        settings = build_settings(args)
        assert settings.autoscale_enabled is False
        assert settings.interpolation_factor == 4
        assert settings.alpha == 0.2
        assert settings.blend_mode is BlendMode.THERMAL_ONLY
        assert settings.camera_format is CameraFormat.YUYV

    def test_camera_size_required(self, data_file, tmp_path):
        with pytest.raises(SystemExit):
            parse_args([str(data_file), "--camera-raw", str(tmp_path / "frame.yuv")])

    def test_bad_camera_size(self, data_file, tmp_path):
        with pytest.raises(SystemExit):
            parse_args([str(data_file), "--camera-raw", "frame.yuv", "--camera-size", "640by480"])


class TestMain:
    def test_writes_images(self, tmp_path, data_file, capsys):
        output = tmp_path / "out"
        assert main([str(data_file), "-o", str(output), "-f", "2"]) == 0

        with Image.open(output / "converted.png") as image:
            assert image.size == (32, 24)
        with Image.open(output / "converted_upscaled.png") as image:
            assert image.size == (64, 48)
        with Image.open(output / "scale_upscaled_img.png") as image:
            assert image.size == (10, 24)
        assert not (output / "fused.png").exists()

        out = capsys.readouterr().out
        assert "Min Pixel: [0, 0]: 15.0°C" in out
        assert "Max Pixel: [31, 23]: 30.0°C" in out

    def test_fused(self, tmp_path, data_file):
        raw = tmp_path / "frame.yuv"
        raw.write_bytes(bytes([90] * 64 + [128] * 32))
        output = tmp_path / "out"
        argv = [str(data_file), "-o", str(output), "--camera-raw", str(raw), "--camera-size", "8x8"]
        assert main(argv) == 0
        with Image.open(output / "fused.png") as image:
            assert image.size == (8, 8)

    def test_short_camera_frame(self, tmp_path, data_file):
        raw = tmp_path / "frame.yuv"
        raw.write_bytes(bytes(10))
        output = tmp_path / "out"
        argv = [str(data_file), "-o", str(output), "--camera-raw", str(raw), "--camera-size", "8x8"]
        assert main(argv) == 1
        assert not output.exists()

    def test_missing_data(self, tmp_path):
        assert main([str(tmp_path / "missing.npy"), "-o", str(tmp_path / "out")]) == 1

    def test_log_file(self, tmp_path, data_file):
        log_file = tmp_path / "thermocam.log"
        try:
            assert main([str(data_file), "-o", str(tmp_path / "out"), "--log-file", str(log_file)]) == 0
        finally:
            setup_standard_logger()
        events = [json.loads(line)["event"] for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert "load_simulation_data" in events
        assert "images_saved" in events
