# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Top-level package of the thermal and visible-light imaging pipeline."""

import thermocam.log
from thermocam.color import Color, Gradient
from thermocam.decode import BayerPattern, CameraFormat
from thermocam.fusion import BlendMode
from thermocam.image import ImageBuffer
from thermocam.proc import ThermalFrame, process_camera_frame, process_thermal_frame
from thermocam.settings import ProcessingSettings, SettingsStore
from thermocam.thread import PipelineThread

__all__ = [
    "BayerPattern",
    "BlendMode",
    "CameraFormat",
    "Color",
    "Gradient",
    "ImageBuffer",
    "PipelineThread",
    "ProcessingSettings",
    "SettingsStore",
    "ThermalFrame",
    "process_camera_frame",
    "process_thermal_frame",
]
