# PixelStag Filters - Color Adjustments
"""
Point-wise color filters: Invert, Gamma, Brightness, Contrast, Saturation,
grayscale and color conversion.

Brightness and Contrast operate on RGB, sources in other color models are
converted first. Grayscale results are produced as gray pixels and converted
to the destination's model on write.

Each filter reads exactly the point it writes, so all of them support
in-place evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from pixelstag.color import LUMA_WEIGHTS, ColorModel
from pixelstag.config import settings
from pixelstag.pixel import Pixel
from .base import Filter, Input, register_filter

if TYPE_CHECKING:
    from pixelstag.geometry import Point


def _default_gamma() -> float:
    return settings.DEFAULT_GAMMA


def _color_slice(pixel: Pixel) -> slice:
    """Slice selecting the non-alpha channels of a pixel."""
    return slice(0, pixel.color.alpha_index)


_RGB_MODELS = (ColorModel.GRAY, ColorModel.RGB, ColorModel.RGBA)


def _as_rgb(pixel: Pixel) -> Pixel:
    """The pixel itself if it is gray or RGB(A), else converted to RGB."""
    if pixel.color in _RGB_MODELS:
        return pixel
    return pixel.convert(ColorModel.RGB)


def _gray(value: float, alpha: float | None) -> Pixel:
    """A gray pixel, RGBA if an alpha value is given."""
    if alpha is None:
        return Pixel([value], ColorModel.GRAY)
    return Pixel([value, value, value, alpha], ColorModel.RGBA)


@register_filter
@dataclass
class Invert(Filter):
    """Invert all channels (``1 - x``)."""

    _supports_inplace: ClassVar[bool] = True

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = input.get_pixel(pt)
        px.data = 1.0 - px.data
        px.copy_to(dest)


@register_filter
@dataclass
class GammaLog(Filter):
    """Convert to log gamma (``x ** (1 / gamma)``)."""

    _supports_inplace: ClassVar[bool] = True

    gamma: float = field(default_factory=_default_gamma)

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = input.get_pixel(pt)
        px.data = np.power(px.data, 1.0 / self.gamma)
        px.copy_to(dest)


@register_filter
@dataclass
class GammaLin(Filter):
    """Convert to linear gamma (``x ** gamma``)."""

    _supports_inplace: ClassVar[bool] = True

    gamma: float = field(default_factory=_default_gamma)

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = input.get_pixel(pt)
        px.data = np.power(px.data, self.gamma)
        px.copy_to(dest)


@register_filter
@dataclass
class Brightness(Filter):
    """Scale the color channels uniformly.

    factor: 0.0 = black, 1.0 = original, 2.0 = 2x bright
    """

    _supports_inplace: ClassVar[bool] = True

    factor: float = 1.0

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = _as_rgb(input.get_pixel(pt))
        px.data[_color_slice(px)] *= self.factor
        px.copy_to(dest)


@register_filter
@dataclass
class Contrast(Filter):
    """Adjust contrast around mid gray (``(x - 0.5) * factor + 0.5``).

    factor: 0.0 = gray, 1.0 = original, 2.0 = high contrast
    """

    _supports_inplace: ClassVar[bool] = True

    factor: float = 1.0

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = _as_rgb(input.get_pixel(pt))
        colors = _color_slice(px)
        px.data[colors] = (px.data[colors] - 0.5) * self.factor + 0.5
        px.copy_to(dest)


@register_filter
@dataclass
class Saturation(Filter):
    """Scale the saturation of the HSV representation.

    factor: 0.0 = grayscale, 1.0 = original, 2.0 = vivid
    """

    _supports_inplace: ClassVar[bool] = True

    factor: float = 1.0

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = input.get_pixel(pt)
        hsv = px.convert(ColorModel.HSV)
        hsv[1] = min(1.0, max(0.0, hsv[1] * self.factor))
        result = hsv.convert(px.color)
        if px.color.has_alpha:
            result[px.color.alpha_index] = px.alpha
        result.copy_to(dest)


@register_filter
@dataclass
class ToGrayscale(Filter):
    """Convert to grayscale using ``0.21 R + 0.72 G + 0.07 B``.

    The result is a gray pixel converted to the destination's color model,
    an alpha channel is taken over from the source.
    """

    _supports_inplace: ClassVar[bool] = True

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = input.get_pixel(pt)
        luma = float(px.convert(ColorModel.RGB).data @ LUMA_WEIGHTS)
        _gray(luma, px.alpha).copy_to(dest)


@register_filter
@dataclass
class ToColor(Filter):
    """Broadcast the first channel of the source to all color channels.

    If the destination has an alpha channel but the source has none, alpha
    is set to full opacity.
    """

    _supports_inplace: ClassVar[bool] = True

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        px = input.get_pixel(pt)
        _gray(px[0], px.alpha).copy_to(dest)


@register_filter
@dataclass
class Convert(Filter):
    """Convert the source pixel to the destination's color model."""

    _supports_inplace: ClassVar[bool] = True

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        input.get_pixel(pt).copy_to(dest)


__all__ = [
    'Invert',
    'GammaLog',
    'GammaLin',
    'Brightness',
    'Contrast',
    'Saturation',
    'ToGrayscale',
    'ToColor',
    'Convert',
]
