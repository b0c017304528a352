# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""RGB image buffers, upscaling and overlay drawing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np
from PIL import Image

from thermocam.color import Color
from thermocam.consts import MARKER_REACH
from thermocam.error import DimensionMismatch

if TYPE_CHECKING:
    from thermocam.stats import TemperaturePixel

__all__ = [
    "ImageBuffer",
    "build_image",
    "draw_marker",
    "marker_position",
    "resize_nearest",
    "upscale",
]


@dataclass(eq=False)
class ImageBuffer:
    """A row-major 8-bit RGB image.

    `data` is an uint8 array of shape `(height, width, 3)`.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        expected_shape = (self.height, self.width, 3)
        if self.data.shape != expected_shape:
            raise DimensionMismatch(self.width * self.height * 3, self.data.size)
        if self.data.dtype != np.uint8:
            raise TypeError(f"Image data must be uint8, got {self.data.dtype}")

    @classmethod
    def blank(cls, width: int, height: int) -> ImageBuffer:
        return cls(width, height, np.zeros((height, width, 3), dtype=np.uint8))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes | bytearray | memoryview) -> ImageBuffer:
        """Wrap a row-major RGB byte sequence of length `width * height * 3`."""
        expected = width * height * 3
        if len(data) != expected:
            raise DimensionMismatch(expected, len(data))
        array = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 3).copy()
        return cls(width, height, array)

    @classmethod
    def from_array(cls, array: np.ndarray) -> ImageBuffer:
        """Copy an `(height, width, 3)` array into a new image, casting it to uint8."""
        if array.ndim != 3 or array.shape[2] != 3:
            raise ValueError(f"Expected an array of shape (height, width, 3), got {array.shape}")
        height, width = array.shape[:2]
        return cls(width, height, np.array(array, dtype=np.uint8, order="C", copy=True))

    @classmethod
    def from_pil(cls, image: Image.Image) -> ImageBuffer:
        return cls.from_array(np.array(image.convert("RGB")))

    @property
    def shape(self) -> tuple[int, int]:
        """Format: (height, width)."""
        return (self.height, self.width)

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.data))

    def copy(self) -> ImageBuffer:
        return ImageBuffer(self.width, self.height, self.data.copy())

    def pixel(self, x: int, y: int) -> Color:
        return Color.from_sequence(self.data[y, x])


def build_image(colors: Sequence[Color] | np.ndarray, width: int, height: int) -> ImageBuffer:
    """Build an image from per-pixel colors given in scan order.

    Parameters
    ----------
    colors : Sequence[Color] | np.ndarray
        `width * height` colors, either `Color` objects or an array whose last
        axis holds the RGB channels.
    width : int
        Image width.
    height : int
        Image height.

    Raises
    ------
    DimensionMismatch
        If the number of colors is not `width * height`.

    """
    if isinstance(colors, np.ndarray):
        if colors.shape[-1] != 3:
            raise ValueError(f"Color array must end with an RGB axis, got shape {colors.shape}")
        array = colors.reshape(-1, 3)
    else:
        array = np.array([c.to_tuple() for c in colors], dtype=np.uint8).reshape(-1, 3)

    count = array.shape[0]
    if count != width * height:
        raise DimensionMismatch(width * height, count)
    return ImageBuffer(width, height, array.astype(np.uint8).reshape(height, width, 3))


def upscale(image: ImageBuffer, factor: int) -> ImageBuffer:
    """Enlarge an image by an integer factor with Lanczos (a=3) resampling.

    Parameters
    ----------
    image : ImageBuffer
        The image to enlarge.
    factor : int
        Integer scale factor (must be >= 1).

    Returns
    -------
    ImageBuffer
        A new image of size `(width * factor, height * factor)`.

    """
    if not isinstance(factor, int) or factor < 1:
        raise ValueError("Scale factor must be an integer >= 1.")
    if factor == 1:
        return image.copy()
    resized = image.to_pil().resize(
        (image.width * factor, image.height * factor),
        resample=Image.Resampling.LANCZOS,
    )
    return ImageBuffer.from_pil(resized)


def resize_nearest(image: ImageBuffer, width: int, height: int) -> ImageBuffer:
    """Resize an image to an arbitrary size with nearest neighbour sampling."""
    if width < 1 or height < 1:
        raise ValueError(f"Invalid target size: {width}x{height}")
    resized = image.to_pil().resize((width, height), resample=Image.Resampling.NEAREST)
    return ImageBuffer.from_pil(resized)


def marker_position(pixel: TemperaturePixel, factor: int) -> tuple[int, int]:
    """Center of a grid cell in an image upscaled by `factor`."""
    return (pixel.x * factor + factor // 2, pixel.y * factor + factor // 2)


def draw_marker(x: int, y: int, color: Color, image: ImageBuffer) -> None:
    """Draw a plus-shaped marker centered at `(x, y)` in place.

    The marker covers the center and two pixels in each direction. Pixels
    falling outside the image are skipped, the center included.
    """
    value = color.to_array()
    for offset in range(-MARKER_REACH, MARKER_REACH + 1):
        _put_pixel(image, x + offset, y, value)
        if offset != 0:
            _put_pixel(image, x, y + offset, value)


def _put_pixel(image: ImageBuffer, x: int, y: int, value: np.ndarray) -> None:
    if 0 <= x < image.width and 0 <= y < image.height:
        image.data[y, x] = value
