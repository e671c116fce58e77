"""
Color models and the pure conversion function between them.

All conversions operate on normalized float values and run through RGB as
the hub model. Values are numpy arrays whose last axis holds the channels,
so a single pixel ``(C,)`` and a whole image ``(H, W, C)`` convert alike.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

import numpy as np

LUMA_WEIGHTS = np.array([0.21, 0.72, 0.07])
"Weights of R, G and B used for grayscale conversion"

_RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])
_XYZ_TO_RGB = np.linalg.inv(_RGB_TO_XYZ)


class ColorModel(Enum):
    """Supported color models. The value is the model's name."""

    GRAY = "gray"
    RGB = "rgb"
    RGBA = "rgba"
    HSV = "hsv"
    XYZ = "xyz"

    @property
    def channels(self) -> int:
        """Number of channels of the model."""
        return _CHANNELS[self]

    @property
    def has_alpha(self) -> bool:
        return self is ColorModel.RGBA

    @property
    def alpha_index(self) -> int | None:
        """Index of the alpha channel, None if the model has none."""
        return self.channels - 1 if self.has_alpha else None

    @classmethod
    def of(cls, value: ColorModelTypes) -> ColorModel:
        """Convert a model name (case-insensitive) to a ColorModel."""
        if isinstance(value, ColorModel):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown color model: {value}") from None

    @classmethod
    def for_channels(cls, channels: int) -> ColorModel:
        """Default model for a buffer with the given channel count."""
        defaults = {1: cls.GRAY, 3: cls.RGB, 4: cls.RGBA}
        if channels not in defaults:
            raise ValueError(f"No default color model for {channels} channels")
        return defaults[channels]


_CHANNELS = {
    ColorModel.GRAY: 1,
    ColorModel.RGB: 3,
    ColorModel.RGBA: 4,
    ColorModel.HSV: 3,
    ColorModel.XYZ: 3,
}

ColorModelTypes = Union[ColorModel, str]
"Anything accepted where a color model is expected"


def _hsv_to_rgb(hsv: np.ndarray) -> np.ndarray:
    h = (hsv[..., 0] % 1.0) * 6.0
    s = hsv[..., 1]
    v = hsv[..., 2]
    sector = np.floor(h).astype(int) % 6
    f = h - np.floor(h)
    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))
    r = np.choose(sector, [v, q, p, p, t, v])
    g = np.choose(sector, [t, v, v, q, p, p])
    b = np.choose(sector, [p, p, t, v, v, q])
    return np.stack([r, g, b], axis=-1)


def _rgb_to_hsv(rgb: np.ndarray) -> np.ndarray:
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = np.max(rgb[..., :3], axis=-1)
    minc = np.min(rgb[..., :3], axis=-1)
    delta = maxc - minc
    v = maxc
    with np.errstate(divide="ignore", invalid="ignore"):
        s = np.where(maxc > 0, delta / np.where(maxc > 0, maxc, 1.0), 0.0)
        safe = np.where(delta > 0, delta, 1.0)
        rc = (maxc - r) / safe
        gc = (maxc - g) / safe
        bc = (maxc - b) / safe
    h = np.where(r == maxc, bc - gc, np.where(g == maxc, 2.0 + rc - bc, 4.0 + gc - rc))
    h = np.where(delta > 0, (h / 6.0) % 1.0, 0.0)
    return np.stack([h, s, v], axis=-1)


def _to_rgb(values: np.ndarray, src: ColorModel) -> tuple[np.ndarray, np.ndarray | None]:
    """Convert to RGB, returning the alpha channel separately if present."""
    if src is ColorModel.RGB:
        return values, None
    if src is ColorModel.RGBA:
        return values[..., :3], values[..., 3]
    if src is ColorModel.GRAY:
        return np.repeat(values[..., :1], 3, axis=-1), None
    if src is ColorModel.HSV:
        return _hsv_to_rgb(values), None
    return values @ _XYZ_TO_RGB.T, None


def _from_rgb(rgb: np.ndarray, alpha: np.ndarray | None, dst: ColorModel) -> np.ndarray:
    if dst is ColorModel.RGB:
        return rgb
    if dst is ColorModel.RGBA:
        if alpha is None:
            alpha = np.ones(rgb.shape[:-1])
        return np.concatenate([rgb, alpha[..., np.newaxis]], axis=-1)
    if dst is ColorModel.GRAY:
        return (rgb @ LUMA_WEIGHTS)[..., np.newaxis]
    if dst is ColorModel.HSV:
        return _rgb_to_hsv(rgb)
    return rgb @ _RGB_TO_XYZ.T


def convert_color(values: np.ndarray, src: ColorModelTypes, dst: ColorModelTypes) -> np.ndarray:
    """Convert normalized channel values from one color model to another.

    :param values: Float array with the channels on the last axis.
    :param src: Model of ``values``.
    :param dst: Target model.
    :returns: A new float64 array with ``dst.channels`` channels. Alpha is
        dropped for targets without alpha and set to 1.0 for sources
        without alpha.
    """
    src = ColorModel.of(src)
    dst = ColorModel.of(dst)
    values = np.asarray(values, dtype=np.float64)
    if values.shape[-1] != src.channels:
        raise ValueError(f"Expected {src.channels} channels for {src.name}, got {values.shape[-1]}")
    if src is dst:
        return values.copy()
    rgb, alpha = _to_rgb(values, src)
    return np.array(_from_rgb(rgb, alpha, dst), dtype=np.float64)


__all__ = ["ColorModel", "ColorModelTypes", "LUMA_WEIGHTS", "convert_color"]
