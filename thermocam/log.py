# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Structured logging for the imaging pipeline.

All modules log through `get_logger()`, which returns a structlog logger
bridged onto the stdlib `thermocam` logger. Events are snake_case names with
key/value context, e.g. `logger.warning("degenerate_scale", min_temp=21.0)`.
The pipeline thread binds the frame number with `structlog.contextvars`, so
every event of a frame carries `frame=<n>`.

By default the package only emits warnings to stderr. Applications pick the
output with `setup_console_logger` or `setup_file_logger`.
"""

from __future__ import annotations

import logging
from pathlib import Path

import structlog
from structlog.stdlib import BoundLogger

__all__ = [
    "ThermocamLogger",
    "get_logger",
    "setup_console_logger",
    "setup_file_logger",
    "setup_standard_logger",
]

ThermocamLogger = BoundLogger

DEFAULT_LOGGER_NAME = "thermocam"
DEFAULT_LOGGER_LEVEL = logging.WARNING

_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper("%Y-%m-%dT%H:%M:%S%z", utc=False),
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def get_logger(**initial_values) -> ThermocamLogger:
    """Get the package logger, optionally bound to some context.

    Examples
    --------
    >>> from thermocam.log import get_logger
    >>> logger = get_logger(source="simulation")
    >>> logger.warning("frame_dropped", error="Input contains no samples")

    """
    logger: BoundLogger = structlog.get_logger(DEFAULT_LOGGER_NAME, **initial_values)
    return logger


def setup_standard_logger() -> None:
    """Route package events to stderr at WARNING level.

    Called on import; only the `thermocam` stdlib logger is touched.
    """
    structlog.configure(
        processors=_SHARED_PROCESSORS,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _install_handler(logging.StreamHandler(), _console_renderer(colors=True), DEFAULT_LOGGER_LEVEL)


def setup_console_logger(log_level: int | str = "INFO") -> None:
    """Log to stderr with colored, human readable output.

    Parameters
    ----------
    log_level : int | str, optional
        The lowest level to show, by default `"INFO"`.

    """
    _install_handler(logging.StreamHandler(), _console_renderer(colors=True), _get_log_level(log_level))


def setup_file_logger(file_path: Path | str, log_level: int | str = "INFO", *, json_format: bool = True) -> None:
    """Log to a file, one JSON object per line by default.

    Parameters
    ----------
    file_path : Path | str
        The log file, truncated when opened.
    log_level : int | str, optional
        The lowest level to write, by default `"INFO"`.
    json_format : bool, optional
        Write JSON lines, or plain console-style lines if False.

    """
    renderer = structlog.processors.JSONRenderer() if json_format else _console_renderer(colors=False)
    handler = logging.FileHandler(Path(file_path), mode="w", encoding="utf-8")
    _install_handler(handler, renderer, _get_log_level(log_level))


def _console_renderer(*, colors: bool) -> structlog.dev.ConsoleRenderer:
    return structlog.dev.ConsoleRenderer(sort_keys=False, colors=colors)


def _install_handler(handler: logging.Handler, renderer, level: int) -> None:
    """Replace the handlers of the package logger with `handler`."""
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)

    logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False


def _get_log_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    log_level = logging.getLevelNamesMapping().get(level.upper())
    if log_level is None:
        raise KeyError(f"Invalid log level: {level}")
    return log_level


setup_standard_logger()
