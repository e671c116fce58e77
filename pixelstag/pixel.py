"""
Implements :class:`Pixel`, a small float vector of channel values tagged
with a color model.
"""

from __future__ import annotations

from typing import Callable, Iterator, Union

import numpy as np

from .color import ColorModel, ColorModelTypes, convert_color


class Pixel:
    """
    A single pixel's normalized channel values.

    Pixels are value types: reading one from an image always yields an
    independent copy, and arithmetic returns new pixels. Arithmetic works
    with scalars and with pixels of the same color model.
    """

    __slots__ = ("data", "color")

    def __init__(self, data, color: ColorModelTypes | None = None):
        """
        :param data: Channel values, any sequence of numbers.
        :param color: Color model. Derived from the channel count if omitted.
        """
        self.data: np.ndarray = np.array(data, dtype=np.float64).reshape(-1)
        "The channel values as float64 vector"
        self.color: ColorModel = (
            ColorModel.of(color) if color is not None else ColorModel.for_channels(len(self.data))
        )
        "The pixel's color model"
        if len(self.data) != self.color.channels:
            raise ValueError(
                f"{self.color.name} pixel needs {self.color.channels} channels, got {len(self.data)}"
            )

    @classmethod
    def zeros(cls, color: ColorModelTypes) -> Pixel:
        """A pixel with all channels set to 0.0."""
        color = ColorModel.of(color)
        return cls(np.zeros(color.channels), color)

    def copy(self) -> Pixel:
        return Pixel(self.data, self.color)

    def convert(self, color: ColorModelTypes) -> Pixel:
        """Return the pixel converted to another color model."""
        color = ColorModel.of(color)
        if color is self.color:
            return self.copy()
        return Pixel(convert_color(self.data, self.color, color), color)

    def copy_to(self, dest: Pixel) -> None:
        """Write this pixel's values into ``dest``, converting if needed."""
        if dest.color is self.color:
            dest.data[:] = self.data
        else:
            dest.data[:] = convert_color(self.data, self.color, dest.color)

    def set(self, values) -> None:
        """Overwrite all channel values in place."""
        self.data[:] = values

    def map(self, fn: Callable[[float], float]) -> Pixel:
        """Return a new pixel with ``fn`` applied to every channel."""
        return Pixel([fn(v) for v in self.data], self.color)

    def map_in_place(self, fn: Callable[[float], float]) -> None:
        for i, v in enumerate(self.data):
            self.data[i] = fn(v)

    @property
    def alpha(self) -> float | None:
        index = self.color.alpha_index
        return None if index is None else float(self.data[index])

    def _operand(self, other: PixelOperand) -> np.ndarray | float:
        if isinstance(other, Pixel):
            if other.color is not self.color:
                other = other.convert(self.color)
            return other.data
        return other

    def __add__(self, other: PixelOperand) -> Pixel:
        return Pixel(self.data + self._operand(other), self.color)

    def __sub__(self, other: PixelOperand) -> Pixel:
        return Pixel(self.data - self._operand(other), self.color)

    def __mul__(self, other: PixelOperand) -> Pixel:
        return Pixel(self.data * self._operand(other), self.color)

    def __truediv__(self, other: PixelOperand) -> Pixel:
        return Pixel(self.data / self._operand(other), self.color)

    __radd__ = __add__
    __rmul__ = __mul__

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index: int) -> float:
        return float(self.data[index])

    def __setitem__(self, index: int, value: float) -> None:
        self.data[index] = value

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self.data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Pixel):
            return NotImplemented
        return self.color is other.color and np.array_equal(self.data, other.data)

    def __repr__(self) -> str:
        values = ", ".join(f"{v:.4g}" for v in self.data)
        return f"Pixel({self.color.name}: {values})"


PixelOperand = Union[Pixel, float, int]

__all__ = ["Pixel", "PixelOperand"]
