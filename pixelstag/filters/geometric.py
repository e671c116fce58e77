# PixelStag Filters - Geometric
"""
Geometric filters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import Filter, Input, register_filter

if TYPE_CHECKING:
    from pixelstag.geometry import Point
    from pixelstag.pixel import Pixel


@register_filter
@dataclass
class Crop(Filter):
    """Copy a window of the source to the top-left corner of the destination.

    x: Left edge of the window in the source
    y: Top edge of the window in the source
    width: Window width
    height: Window height

    Destination points outside of the window, or whose source point lies
    outside of the source image, are left unchanged.
    """

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def requires_intermediate_image(self) -> bool:
        # An offset window reads points other than the one being written
        return self.x != 0 or self.y != 0

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        if pt.x >= self.width or pt.y >= self.height:
            return
        src = (pt.x + self.x, pt.y + self.y)
        if src[0] >= input.width or src[1] >= input.height:
            return
        input.get_pixel(src).copy_to(dest)


__all__ = ['Crop']
