# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Thermocam error types."""

from __future__ import annotations

from typing import Any


class ThermocamError(Exception):
    """Base class of all errors raised by the image pipeline."""


class EmptyInputError(ThermocamError, ValueError):
    """Exception raised when a sample sequence is empty."""

    def __init__(self, *args: Any) -> None:
        super().__init__("Input contains no samples", *args)


class DimensionMismatch(ThermocamError, ValueError):
    """Exception raised when a buffer does not match its declared dimensions."""

    def __init__(self, expected: int, actual: int, *args: Any) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Dimension mismatch, expected: {expected}, actual: {actual}", *args)


class BufferTooShortError(ThermocamError, ValueError):
    """Exception raised when a raw buffer is smaller than its dimensions require."""

    def __init__(self, required: int, actual: int, *args: Any) -> None:
        self.required = required
        self.actual = actual
        super().__init__(f"Buffer too short, required: {required} bytes, actual: {actual} bytes", *args)


class DegenerateScaleError(ThermocamError, ArithmeticError):
    """Exception raised when a temperature scale has no extent (min == max)."""

    def __init__(self, value: float, *args: Any) -> None:
        self.value = value
        super().__init__(f"Degenerate scale, min and max are both {value}", *args)


class InvalidDimensionsError(ThermocamError, ValueError):
    """Exception raised when frame dimensions cannot be encoded in a pixel format."""
