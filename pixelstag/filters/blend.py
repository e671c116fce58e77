# PixelStag Filters - Blend
"""
Filters combining two source images.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pixelstag.exceptions import EvaluationError
from .base import Filter, Input, register_filter

if TYPE_CHECKING:
    from pixelstag.geometry import Point
    from pixelstag.image import Image
    from pixelstag.pixel import Pixel


@register_filter
@dataclass
class Blend(Filter):
    """Average two images element-wise.

    The first operand uses the default lookup (so inside a composition it is
    the upstream result), the second one is always source image 1.
    """

    def before_compute(self, input: Input, output: Image) -> Input:
        if len(input) < 2:
            raise EvaluationError(f"Blend needs two source images, got {len(input)}")
        return input

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        a = input.get_pixel(pt)
        b = input.get_pixel(pt, 1)
        ((a + b) / 2.0).copy_to(dest)


__all__ = ['Blend']
