# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Decoders for raw camera pixel formats."""

from __future__ import annotations

from enum import Enum

import cv2
import numpy as np

from thermocam.consts import (
    BAYER10_GROUP_BYTES,
    BAYER10_GROUP_PIXELS,
    CHROMA_OFFSET,
    YUV420_B_U,
    YUV420_G_U,
    YUV420_G_V,
    YUV420_R_V,
    YUYV_B_U,
    YUYV_G_V1,
    YUYV_G_V2,
    YUYV_R_V,
)
from thermocam.error import BufferTooShortError, InvalidDimensionsError
from thermocam.image import ImageBuffer

__all__ = [
    "BayerPattern",
    "CameraFormat",
    "bayer10_to_8bit",
    "bayer10_to_rgb",
    "decode_frame",
    "demosaic",
    "required_size",
    "unpack_bayer10",
    "yuv420_to_rgb",
    "yuyv_to_rgb",
]

RawBuffer = bytes | bytearray | memoryview | np.ndarray


class CameraFormat(Enum):
    BAYER10P = "bayer10p"
    """10-bit Bayer, 4 pixels packed into 5 bytes."""
    YUYV = "yuyv"
    """Packed YUV 4:2:2, `Y0 U Y1 V`."""
    YUV420 = "yuv420"
    """Planar YUV 4:2:0 (I420), Y plane then U plane then V plane."""


class BayerPattern(Enum):
    """Color filter layout of the top-left 2x2 cell of the sensor."""

    RGGB = "rggb"
    BGGR = "bggr"
    GRBG = "grbg"
    GBRG = "gbrg"


# OpenCV names Bayer codes after the second row, so RGGB is `BayerBG`.
_DEMOSAIC_CODES = {
    BayerPattern.RGGB: cv2.COLOR_BayerBG2RGB,
    BayerPattern.BGGR: cv2.COLOR_BayerRG2RGB,
    BayerPattern.GRBG: cv2.COLOR_BayerGB2RGB,
    BayerPattern.GBRG: cv2.COLOR_BayerGR2RGB,
}


def required_size(fmt: CameraFormat, width: int, height: int) -> int:
    """Return the number of bytes a frame of `fmt` needs, validating the dimensions.

    Raises
    ------
    InvalidDimensionsError
        If the dimensions cannot be represented in `fmt`.

    """
    if width < 1 or height < 1:
        raise InvalidDimensionsError(f"Invalid frame size: {width}x{height}")
    pixels = width * height
    if fmt is CameraFormat.BAYER10P:
        if pixels % BAYER10_GROUP_PIXELS:
            raise InvalidDimensionsError(
                f"Bayer10 pixel count must be a multiple of {BAYER10_GROUP_PIXELS}, got {pixels}",
            )
        return pixels // BAYER10_GROUP_PIXELS * BAYER10_GROUP_BYTES
    if fmt is CameraFormat.YUYV:
        if width % 2:
            raise InvalidDimensionsError(f"YUYV width must be even, got {width}")
        return pixels * 2
    if fmt is CameraFormat.YUV420:
        if width % 2 or height % 2:
            raise InvalidDimensionsError(f"YUV420 width and height must be even, got {width}x{height}")
        return pixels + 2 * (pixels // 4)
    raise ValueError(f"Unsupported camera format: {fmt}")


def unpack_bayer10(data: RawBuffer, width: int, height: int) -> np.ndarray:
    """Unpack 10-bit packed Bayer data into an uint16 mosaic of shape `(height, width)`.

    Every 5 bytes hold 4 pixels: the 8 most significant bits of each pixel,
    then one byte with the 2 least significant bits of pixel `k` at bit `2k`.

    Examples
    --------
    >>> unpack_bayer10(bytes([0x3F, 0x00, 0x00, 0x00, 0x00]), 4, 1)
    array([[252,   0,   0,   0]], dtype=uint16)

    """
    size = required_size(CameraFormat.BAYER10P, width, height)
    raw = _as_bytes(data, size)

    groups = raw.reshape(-1, BAYER10_GROUP_BYTES)
    msb = groups[:, :BAYER10_GROUP_PIXELS].astype(np.uint16) << 2
    shifts = np.arange(BAYER10_GROUP_PIXELS, dtype=np.uint16) * 2
    lsb = (groups[:, BAYER10_GROUP_PIXELS:].astype(np.uint16) >> shifts) & 0b11
    return (msb | lsb).reshape(height, width)


def bayer10_to_8bit(pixels: np.ndarray) -> np.ndarray:
    """Rescale 10-bit samples to 8 bits with `value * 255 // 1024`."""
    return (pixels.astype(np.uint32) * 255 // 1024).astype(np.uint8)


def demosaic(mosaic: np.ndarray, pattern: BayerPattern) -> np.ndarray:
    """Reconstruct an RGB image from an 8-bit Bayer mosaic with bilinear interpolation.

    Parameters
    ----------
    mosaic : np.ndarray
        2D uint8 mosaic.
    pattern : BayerPattern
        The sensor's color filter layout.

    Returns
    -------
    np.ndarray
        uint8 array of shape `mosaic.shape + (3,)`.

    """
    if mosaic.ndim != 2:
        raise ValueError("Bayer mosaic must be a 2D array.")
    if mosaic.dtype != np.uint8:
        raise TypeError(f"Bayer mosaic must be uint8, got {mosaic.dtype}")
    return cv2.cvtColor(np.ascontiguousarray(mosaic), _DEMOSAIC_CODES[pattern])


def bayer10_to_rgb(
    data: RawBuffer,
    width: int,
    height: int,
    pattern: BayerPattern = BayerPattern.RGGB,
) -> ImageBuffer:
    """Decode a packed 10-bit Bayer frame into an RGB image."""
    mosaic = bayer10_to_8bit(unpack_bayer10(data, width, height))
    return ImageBuffer(width, height, demosaic(mosaic, pattern))


def yuyv_to_rgb(data: RawBuffer, width: int, height: int) -> ImageBuffer:
    """Decode a packed YUYV 4:2:2 frame into an RGB image.

    Each 4 bytes `Y0 U Y1 V` give two pixels sharing `U` and `V`.
    """
    size = required_size(CameraFormat.YUYV, width, height)
    raw = _as_bytes(data, size).reshape(height, width // 2, 4).astype(np.float32)

    y = raw[..., [0, 2]]
    u = raw[..., 1:2] - CHROMA_OFFSET
    v = raw[..., 3:4] - CHROMA_OFFSET

    r = y + YUYV_R_V * v
    g = y - YUYV_G_V1 * v - YUYV_G_V2 * v
    b = y + YUYV_B_U * u

    rgb = np.stack([r, g, b], axis=-1).reshape(height, width, 3)
    return ImageBuffer(width, height, _to_uint8(rgb))


def yuv420_to_rgb(data: RawBuffer, width: int, height: int) -> ImageBuffer:
    """Decode a planar YUV 4:2:0 (I420) frame into an RGB image.

    The U and V planes are `width/2 x height/2` each and follow the luma plane.
    """
    size = required_size(CameraFormat.YUV420, width, height)
    raw = _as_bytes(data, size)

    luma_size = width * height
    chroma_size = luma_size // 4
    chroma_shape = (height // 2, width // 2)
    # U plane at luma_size, V plane at 1.25 * luma_size
    u_start = luma_size
    v_start = u_start + chroma_size

    y = raw[:luma_size].reshape(height, width).astype(np.float32)
    u = raw[u_start:v_start].reshape(chroma_shape)
    v = raw[v_start : v_start + chroma_size].reshape(chroma_shape)

    # chroma sample (x // 2, y // 2) for every pixel
    u = u.repeat(2, axis=0).repeat(2, axis=1).astype(np.float32) - CHROMA_OFFSET
    v = v.repeat(2, axis=0).repeat(2, axis=1).astype(np.float32) - CHROMA_OFFSET

    r = y + YUV420_R_V * v
    g = y - YUV420_G_U * u - YUV420_G_V * v
    b = y + YUV420_B_U * u

    return ImageBuffer(width, height, _to_uint8(np.stack([r, g, b], axis=-1)))


def decode_frame(
    data: RawBuffer,
    width: int,
    height: int,
    fmt: CameraFormat,
    pattern: BayerPattern = BayerPattern.RGGB,
) -> ImageBuffer:
    """Decode a raw camera frame of any supported format into an RGB image."""
    if fmt is CameraFormat.BAYER10P:
        return bayer10_to_rgb(data, width, height, pattern)
    if fmt is CameraFormat.YUYV:
        return yuyv_to_rgb(data, width, height)
    if fmt is CameraFormat.YUV420:
        return yuv420_to_rgb(data, width, height)
    raise ValueError(f"Unsupported camera format: {fmt}")


# ===============================
# Private functions
# ===============================


def _as_bytes(data: RawBuffer, size: int) -> np.ndarray:
    """View the first `size` bytes of `data` as an uint8 array."""
    if isinstance(data, np.ndarray):
        raw = data.reshape(-1).view(np.uint8) if data.dtype != np.uint8 else data.reshape(-1)
    else:
        raw = np.frombuffer(data, dtype=np.uint8)
    if raw.size < size:
        raise BufferTooShortError(size, raw.size)
    return raw[:size]


def _to_uint8(channels: np.ndarray) -> np.ndarray:
    """Clamp every channel to [0, 255] and truncate."""
    return np.clip(channels, 0, 255).astype(np.uint8)
