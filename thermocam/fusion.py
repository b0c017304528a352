# Copyright (c) 2025 Meridian Innovation. All rights reserved.

"""Fusion of visible-light and thermal images of different resolutions."""

from __future__ import annotations

from enum import Enum

import numpy as np

from thermocam.consts import LUMINANCE_WEIGHTS
from thermocam.image import ImageBuffer

__all__ = ["BlendMode", "blend", "composite", "luminance", "resample_nearest"]


class BlendMode(Enum):
    FUSED = "fused"
    VISIBLE_ONLY = "visible_only"
    THERMAL_ONLY = "thermal_only"


def luminance(image: ImageBuffer) -> np.ndarray:
    """Return the `0.3R + 0.59G + 0.11B` luminance as a float64 `(height, width)` array in `[0, 255]`."""
    # integer percent weights keep gray pixels exact
    weights = np.array([round(w * 100) for w in LUMINANCE_WEIGHTS], dtype=np.int32)
    lum = (image.data.astype(np.int32) @ weights) / 100.0
    return np.clip(lum, 0.0, 255.0)


def resample_nearest(image: ImageBuffer, width: int, height: int) -> ImageBuffer:
    """Sample `image` at `(floor(x / width * src_w), floor(y / height * src_h))` for every output pixel."""
    if width < 1 or height < 1:
        raise ValueError(f"Invalid target size: {width}x{height}")
    xs = np.arange(width) * image.width // width
    ys = np.arange(height) * image.height // height
    return ImageBuffer(width, height, image.data[ys[:, np.newaxis], xs[np.newaxis, :]])


def composite(foreground: ImageBuffer, background: ImageBuffer, alpha: float) -> ImageBuffer:
    """Blend a thermal background over the grayscale of a visible-light foreground.

    Parameters
    ----------
    foreground : ImageBuffer
        The visible-light image. The output has its dimensions.
    background : ImageBuffer
        The false-color thermal image, any size.
    alpha : float
        Weight of the background, in `[0, 1]`. `0` gives the foreground
        luminance, `1` gives the background resampled to the foreground size.

    Returns
    -------
    ImageBuffer
        `background * alpha + luminance * (1 - alpha)` per channel, truncated.

    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be in [0, 1], got {alpha}")

    sampled = resample_nearest(background, foreground.width, foreground.height).data.astype(np.float64)
    lum = luminance(foreground)[..., np.newaxis]
    fused = sampled * alpha + lum * (1.0 - alpha)
    return ImageBuffer(foreground.width, foreground.height, np.clip(fused, 0, 255).astype(np.uint8))


def blend(foreground: ImageBuffer, background: ImageBuffer, mode: BlendMode, alpha: float) -> ImageBuffer:
    """Combine the visible and thermal images according to `mode`."""
    if mode is BlendMode.FUSED:
        return composite(foreground, background, alpha)
    if mode is BlendMode.VISIBLE_ONLY:
        return foreground.copy()
    if mode is BlendMode.THERMAL_ONLY:
        return resample_nearest(background, foreground.width, foreground.height)
    raise ValueError(f"Unsupported blend mode: {mode}")
