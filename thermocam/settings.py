# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Processing settings and their thread-safe store."""

from __future__ import annotations

import dataclasses
import json
import threading
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Literal

import yaml

from thermocam.color import Color, Gradient
from thermocam.consts import (
    DEFAULT_ALPHA,
    DEFAULT_INTERPOLATION_FACTOR,
    DEFAULT_MANUAL_MAX_TEMP,
    DEFAULT_MANUAL_MIN_TEMP,
    DEFAULT_MAX_TEMP_COLOR,
    DEFAULT_MIN_TEMP_COLOR,
    TEMP_STEP,
)
from thermocam.decode import BayerPattern, CameraFormat
from thermocam.fusion import BlendMode
from thermocam.log import get_logger

__all__ = ["ProcessingSettings", "SettingsStore", "load_settings", "loads_settings"]

_ENUM_FIELDS = {
    "blend_mode": BlendMode,
    "camera_format": CameraFormat,
    "bayer_pattern": BayerPattern,
}
_COLOR_FIELDS = ("min_color", "max_color")


@dataclass(frozen=True)
class ProcessingSettings:
    """Settings read once per processed frame."""

    interpolation_factor: int = DEFAULT_INTERPOLATION_FACTOR
    """Integer upscaling factor of the thermal image."""
    autoscale_enabled: bool = True
    """Scale colors to the frame's own min/max instead of the manual range."""
    manual_min_temp: float = DEFAULT_MANUAL_MIN_TEMP
    manual_max_temp: float = DEFAULT_MANUAL_MAX_TEMP
    min_color: Color = field(default_factory=lambda: Color(*DEFAULT_MIN_TEMP_COLOR))
    max_color: Color = field(default_factory=lambda: Color(*DEFAULT_MAX_TEMP_COLOR))
    blend_mode: BlendMode = BlendMode.FUSED
    alpha: float = DEFAULT_ALPHA
    """Weight of the thermal image in `BlendMode.FUSED`."""
    camera_format: CameraFormat = CameraFormat.YUV420
    bayer_pattern: BayerPattern = BayerPattern.RGGB
    """Color filter layout of the camera sensor, only used by `CameraFormat.BAYER10P`."""

    def __post_init__(self):
        if not isinstance(self.interpolation_factor, int) or self.interpolation_factor < 1:
            raise ValueError(f"interpolation_factor must be an integer >= 1, got {self.interpolation_factor}")
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"alpha must be in [0, 1], got {self.alpha}")
        # frozen, so coerced values go through object.__setattr__
        for name in _COLOR_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, Color):
                object.__setattr__(self, name, Color.from_sequence(value))
        for name, enum_type in _ENUM_FIELDS.items():
            value = getattr(self, name)
            if not isinstance(value, enum_type):
                object.__setattr__(self, name, enum_type(str(value).lower()))

    @property
    def gradient(self) -> Gradient:
        return Gradient(self.min_color, self.max_color)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProcessingSettings:
        """Create settings from plain values, e.g. a parsed configuration file.

        Colors are `[r, g, b]` lists and enums are given by value, e.g.
        `{"blend_mode": "thermal_only", "min_color": [0, 0, 255]}`.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise KeyError(f"Unsupported settings: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        for name in _COLOR_FIELDS:
            data[name] = list(getattr(self, name).to_tuple())
        for name in _ENUM_FIELDS:
            data[name] = getattr(self, name).value
        return data


class SettingsStore:
    """Lock-guarded holder of the process-wide `ProcessingSettings`.

    The processing worker takes one `snapshot` per frame and works on it
    without holding the lock, so mutators never wait longer than a copy.

    Examples
    --------
    >>> store = SettingsStore()
    >>> store.toggle_autoscale()
    >>> store.snapshot().autoscale_enabled
    False

    """

    _logger = get_logger()

    def __init__(self, settings: ProcessingSettings | None = None):
        self._settings = settings if settings is not None else ProcessingSettings()
        self._lock = threading.Lock()

    def snapshot(self) -> ProcessingSettings:
        with self._lock:
            return self._settings

    def update(self, **changes: Any) -> ProcessingSettings:
        """Replace some settings, return the new settings."""
        with self._lock:
            self._settings = dataclasses.replace(self._settings, **changes)
            settings = self._settings
        self._logger.debug("settings_updated", **changes)
        return settings

    def toggle_autoscale(self) -> None:
        with self._lock:
            enabled = not self._settings.autoscale_enabled
            self._settings = dataclasses.replace(self._settings, autoscale_enabled=enabled)
        self._logger.info("autoscale_toggled", autoscale_enabled=enabled)

    def increase_min_temp(self) -> None:
        self._step("manual_min_temp", TEMP_STEP)

    def decrease_min_temp(self) -> None:
        self._step("manual_min_temp", -TEMP_STEP)

    def increase_max_temp(self) -> None:
        self._step("manual_max_temp", TEMP_STEP)

    def decrease_max_temp(self) -> None:
        self._step("manual_max_temp", -TEMP_STEP)

    def set_blend_mode(self, mode: BlendMode | str) -> None:
        self.update(blend_mode=mode)

    def set_alpha(self, alpha: float) -> None:
        self.update(alpha=alpha)

    def _step(self, name: str, delta: float) -> None:
        with self._lock:
            value = getattr(self._settings, name) + delta
            self._settings = dataclasses.replace(self._settings, **{name: value})
        self._logger.info("manual_scale_changed", **{name: value})


def _load_file(path: str | Path) -> dict[str, Any]:
    """Load a settings file, support yaml, toml, json."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.is_dir():
        raise IsADirectoryError(f"Path is a directory: {path}")
    if path.suffix in (".yaml", ".yml"):
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif path.suffix == ".toml":
        with path.open("rb") as f:
            data = tomllib.load(f)
    elif path.suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        raise ValueError(f"Unsupported file type: {path.suffix}")
    return data


def _settings_from_data(data: Any) -> ProcessingSettings:
    logger = get_logger()
    if not isinstance(data, dict) or "processing" not in data:
        raise ValueError("`processing` key not found.")
    section = data["processing"]
    if not isinstance(section, dict):
        raise ValueError("`processing` must be a mapping of settings.")
    try:
        settings = ProcessingSettings.from_dict(section)
    except Exception as e:
        logger.error("load_settings_failed", error=e)
        raise
    logger.info("load_settings_success", settings=sorted(section))
    return settings


def load_settings(path: str | Path) -> ProcessingSettings:
    """Load processing settings from a yaml, toml or json file.

    The settings live under a top-level `processing` mapping:

    ```yaml
    processing:
      interpolation_factor: 6
      autoscale_enabled: false
      manual_min_temp: 18.0
      manual_max_temp: 35.0
      min_color: [0, 0, 255]
      max_color: [255, 0, 0]
      blend_mode: fused
      alpha: 0.5
      camera_format: bayer10p
      bayer_pattern: rggb
    ```

    Parameters
    ----------
    path : str or Path
        The settings file, the suffix selects the parser.

    Returns
    -------
    ProcessingSettings
        Settings not present in the file keep their defaults.

    """
    data = _load_file(path)
    get_logger().info("load_settings_from_file", path=str(path))
    return _settings_from_data(data)


def loads_settings(
    fp: str | bytes | IO[str] | IO[bytes],
    filetype: Literal["yaml", "toml", "json"] = "yaml",
) -> ProcessingSettings:
    """Load processing settings from a file-like object or string, specifying the file type.

    Parameters
    ----------
    fp : file-like object or str or bytes
        A file-like object with a `.read()` method or a string/bytes containing the settings data.
    filetype : Literal["yaml", "toml", "json"], optional
        The file type to parse ('yaml', 'toml', or 'json'). Default is 'yaml'.

    """
    if hasattr(fp, "read"):
        content = fp.read()  # type: ignore[reportAttributeAccessIssue]
    elif isinstance(fp, (bytes, str)):
        content = fp
    else:
        raise TypeError("Input must be a file-like object or a string or bytes.")

    if filetype == "yaml":
        data = yaml.safe_load(content)
    elif filetype == "toml":
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        data = tomllib.loads(content)
    elif filetype == "json":
        data = json.loads(content)
    else:
        raise ValueError(f"Unsupported file type: {filetype}")

    return _settings_from_data(data)
