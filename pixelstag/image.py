"""
Implements the class :class:`.Image`, PixelStag's dense row-major pixel
buffer that filters read from and write to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

import numpy as np
import PIL.Image

from .color import ColorModel, ColorModelTypes, convert_color
from .geometry import Point, PointTypes, Region
from .pixel import Pixel

if TYPE_CHECKING:
    from .filters.base import Filter

SUPPORTED_DTYPES = (np.uint8, np.uint16, np.float16, np.float32, np.float64)
"Element types an image buffer may use"

_PIL_MODES = {
    ColorModel.GRAY: "L",
    ColorModel.RGB: "RGB",
    ColorModel.RGBA: "RGBA",
}


class Image:
    """
    A dense ``(height, width, channels)`` numpy buffer tagged with a color model.

    Channel values are exchanged as normalized floats: integer element types
    map ``[0, max]`` to ``[0.0, 1.0]``, float element types are used as-is.
    When writing, integer types are clamped to their representable range,
    float types are stored unclamped.
    """

    def __init__(self, pixels: np.ndarray, color: ColorModelTypes | None = None):
        """
        :param pixels: The pixel data. 2D arrays are treated as single channel.
            The array is referenced, not copied.
        :param color: The color model. Derived from the channel count if omitted.

        Raises a ValueError for unsupported element types or if the channel
        count does not match the color model.
        """
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3:
            raise ValueError(f"Expected (H, W, C) pixel array, got shape {pixels.shape}")
        if pixels.dtype.type not in SUPPORTED_DTYPES:
            raise ValueError(f"Unsupported element type: {pixels.dtype}")
        self._pixels = pixels
        self.color: ColorModel = (
            ColorModel.of(color) if color is not None else ColorModel.for_channels(pixels.shape[2])
        )
        "The image's color model"
        if self.color.channels != pixels.shape[2]:
            raise ValueError(
                f"{self.color.name} image needs {self.color.channels} channels, got {pixels.shape[2]}"
            )
        if np.issubdtype(pixels.dtype, np.integer):
            self._scale = float(np.iinfo(pixels.dtype).max)
        else:
            self._scale = None

    @classmethod
    def new(
        cls,
        width: int,
        height: int,
        color: ColorModelTypes = ColorModel.RGB,
        dtype: Any = np.float32,
    ) -> Image:
        """Create a new zero-filled image."""
        color = ColorModel.of(color)
        return cls(np.zeros((height, width, color.channels), dtype=dtype), color)

    @classmethod
    def from_pil(cls, image: PIL.Image.Image) -> Image:
        """Create an 8 bit image from a PIL image (L, RGB or RGBA)."""
        if image.mode not in ("L", "RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.mode else "RGB")
        pixels = np.asarray(image, dtype=np.uint8).copy()
        return cls(pixels, {"L": ColorModel.GRAY, "RGB": ColorModel.RGB}.get(image.mode, ColorModel.RGBA))

    def to_pil(self) -> PIL.Image.Image:
        """Convert to an 8 bit PIL image. HSV and XYZ images are converted to RGB."""
        image = self if self.color in _PIL_MODES else self.converted(ColorModel.RGB)
        data = image.to_float()
        data = np.round(np.clip(data, 0.0, 1.0) * 255.0).astype(np.uint8)
        if image.color is ColorModel.GRAY:
            data = data[:, :, 0]
        return PIL.Image.fromarray(data)

    @property
    def pixels(self) -> np.ndarray:
        """The underlying pixel array (no copy)."""
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def channels(self) -> int:
        return self._pixels.shape[2]

    @property
    def dtype(self) -> np.dtype:
        return self._pixels.dtype

    @property
    def size(self) -> tuple[int, int]:
        """The image's size as ``(width, height)`` tuple"""
        return self.width, self.height

    @property
    def region(self) -> Region:
        """A region covering the whole image"""
        return Region.from_size(self.width, self.height)

    def in_bounds(self, pt: PointTypes) -> bool:
        x, y = pt
        return 0 <= x < self.width and 0 <= y < self.height

    def _to_norm(self, values):
        if self._scale is None:
            return np.asarray(values, dtype=np.float64)
        return np.asarray(values, dtype=np.float64) / self._scale

    def _from_norm(self, values) -> np.ndarray:
        values = np.asarray(values, dtype=np.float64)
        if self._scale is None:
            return values.astype(self.dtype)
        return np.round(np.clip(values, 0.0, 1.0) * self._scale).astype(self.dtype)

    def get_f(self, pt: PointTypes, channel: int) -> float:
        """Get one normalized channel value."""
        x, y = pt
        return float(self._to_norm(self._pixels[y, x, channel]))

    def set_f(self, pt: PointTypes, channel: int, value: float) -> None:
        """Set one channel from a normalized value."""
        x, y = pt
        self._pixels[y, x, channel] = self._from_norm(value)

    def get_pixel(self, pt: PointTypes) -> Pixel:
        """Read the pixel at ``pt`` as an independent copy."""
        x, y = pt
        return Pixel(self._to_norm(self._pixels[y, x]), self.color)

    def set_pixel(self, pt: PointTypes, pixel: Pixel) -> None:
        """Write a pixel, converting its color model if needed."""
        x, y = pt
        if pixel.color is not self.color:
            pixel = pixel.convert(self.color)
        self._pixels[y, x] = self._from_norm(pixel.data)

    def new_pixel(self) -> Pixel:
        """A zero pixel in the image's color model."""
        return Pixel.zeros(self.color)

    def to_float(self) -> np.ndarray:
        """All pixels as normalized float64 array (a copy)."""
        return np.array(self._to_norm(self._pixels), dtype=np.float64)

    def points(self) -> Iterator[Point]:
        """Iterate over all coordinates in row-major order."""
        return self.region.points()

    def iter_pixels(self, region: Region | None = None) -> Iterator[tuple[Point, Pixel]]:
        """Iterate over ``(point, pixel)`` pairs, optionally restricted to a region."""
        region = self.region if region is None else region.clipped(self.width, self.height)
        for pt in region.points():
            yield pt, self.get_pixel(pt)

    def new_like(self) -> Image:
        """A new zero image with the same shape, element type and color model."""
        return Image(np.zeros_like(self._pixels), self.color)

    def new_like_with_color(self, color: ColorModelTypes) -> Image:
        """A new zero image of the same size and element type in another color model."""
        color = ColorModel.of(color)
        return Image(np.zeros((self.height, self.width, color.channels), dtype=self.dtype), color)

    def new_like_with_type(self, dtype: Any) -> Image:
        """A new zero image of the same size and color model with another element type."""
        return Image(np.zeros(self._pixels.shape, dtype=dtype), self.color)

    def converted(self, color: ColorModelTypes) -> Image:
        """Return a float64 copy converted to another color model."""
        color = ColorModel.of(color)
        return Image(convert_color(self.to_float(), self.color, color), color)

    def copy(self) -> Image:
        return Image(self._pixels.copy(), self.color)

    def apply(self, filter: Filter, output: Image | None = None) -> Image:
        """
        Evaluate a filter with this image as the only source.

        :param filter: The filter to run.
        :param output: The destination. A new image like this one if omitted.
        :returns: The destination image.
        """
        if output is None:
            output = self.new_like()
        filter.eval(self, output)
        return output

    def __eq__(self, other) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return (
            self.color is other.color
            and self.dtype == other.dtype
            and np.array_equal(self._pixels, other._pixels)
        )

    def __repr__(self) -> str:
        return f"Image({self.width}x{self.height}, {self.color.name}, {self.dtype})"


__all__ = ["Image", "SUPPORTED_DTYPES"]
