# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Process one recorded thermal frame, optionally fused with a raw camera dump.

Usage
-----
    python -m thermocam data/flir_f32.npy -o output
    python -m thermocam data/flir_f32.npy -d --camera-raw frame.yuv --camera-format yuv420 --camera-size 640x480

Writes `converted.png`, `converted_upscaled.png` and `scale_upscaled_img.png`
(plus `fused.png` with a camera dump) into the output directory.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from thermocam.color import legend_image
from thermocam.decode import BayerPattern, CameraFormat
from thermocam.error import ThermocamError
from thermocam.fusion import BlendMode
from thermocam.log import get_logger, setup_console_logger, setup_file_logger
from thermocam.proc import colorize, process_camera_frame, process_thermal_frame
from thermocam.settings import ProcessingSettings, load_settings
from thermocam.sim import RawFileCameraSource, SimulatedThermalSource


def _frame_size(value: str) -> tuple[int, int]:
    try:
        width, height = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}") from None
    return width, height


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parses command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="thermocam",
        description="Convert recorded thermal data into false-color images.",
    )
    parser.add_argument("data", type=Path, help="Recorded temperatures (.npy, 2D frame or 3D stack).")
    parser.add_argument("-d", "--deactivate-autoscale", action="store_true", help="Use the manual temperature range.")
    parser.add_argument("-f", "--factor", type=int, default=None, help="Interpolation factor of the thermal image.")
    parser.add_argument("-o", "--output", type=Path, default=Path("output"), help="Output directory.")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Settings file (yaml, toml or json).")
    parser.add_argument("--camera-raw", type=Path, default=None, help="Raw visible-light frame to fuse with.")
    parser.add_argument(
        "--camera-format",
        choices=[f.value for f in CameraFormat],
        default=None,
        help="Pixel format of the raw camera frame.",
    )
    parser.add_argument("--camera-size", type=_frame_size, default=None, help="Camera frame size, WIDTHxHEIGHT.")
    parser.add_argument("--bayer-pattern", choices=[p.value for p in BayerPattern], default=None)
    parser.add_argument("--blend-mode", choices=[m.value for m in BlendMode], default=None)
    parser.add_argument("--alpha", type=float, default=None, help="Weight of the thermal image when fused.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages.")
    parser.add_argument("--log-file", type=Path, default=None, help="Write JSON log lines to this file.")
    args = parser.parse_args(argv)

    if args.camera_raw is not None and args.camera_size is None:
        parser.error("--camera-size is required with --camera-raw")
    return args


def build_settings(args: argparse.Namespace) -> ProcessingSettings:
    settings = load_settings(args.config) if args.config is not None else ProcessingSettings()

    changes = {}
    if args.deactivate_autoscale:
        changes["autoscale_enabled"] = False
    if args.factor is not None:
        changes["interpolation_factor"] = args.factor
    if args.camera_format is not None:
        changes["camera_format"] = args.camera_format
    if args.bayer_pattern is not None:
        changes["bayer_pattern"] = args.bayer_pattern
    if args.blend_mode is not None:
        changes["blend_mode"] = args.blend_mode
    if args.alpha is not None:
        changes["alpha"] = args.alpha

    if changes:
        settings = ProcessingSettings.from_dict({**settings.to_dict(), **changes})
    return settings


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log_level = "DEBUG" if args.verbose else "INFO"
    if args.log_file is not None:
        setup_file_logger(args.log_file, log_level)
    else:
        setup_console_logger(log_level)
    logger = get_logger()

    try:
        settings = build_settings(args)
        thermal_source = SimulatedThermalSource(args.data, period=0)

        grid, shape = thermal_source.read()
        frame = process_thermal_frame(grid, shape, settings)
        native = colorize(grid, shape, settings, (frame.scale_min, frame.scale_max))
        legend = legend_image(settings.gradient, height=native.height)

        fused = None
        if args.camera_raw is not None:
            width, height = args.camera_size
            data, _ = RawFileCameraSource(args.camera_raw, width, height).read()
            fused = process_camera_frame(data, width, height, settings, frame.image)
    except (ThermocamError, ValueError, KeyError, OSError) as e:
        logger.error("processing_failed", error=str(e))
        return 1

    args.output.mkdir(parents=True, exist_ok=True)
    native.to_pil().save(args.output / "converted.png")
    legend.to_pil().save(args.output / "scale_upscaled_img.png")
    frame.image.to_pil().save(args.output / "converted_upscaled.png")
    if fused is not None:
        fused.to_pil().save(args.output / "fused.png")
    logger.info("images_saved", output=str(args.output))

    print(f"Min Pixel: {frame.min_pixel}")
    print(f"Max Pixel: {frame.max_pixel}")
    print(f"Mean Temp: {frame.mean:.2f}°C")
    return 0


if __name__ == "__main__":
    sys.exit(main())
