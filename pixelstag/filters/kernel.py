# PixelStag Filters - Convolution Kernels
"""
Discrete 2D convolution with selectable edge handling.

A :class:`Kernel` is a spatial filter: its value at one point depends on the
neighbouring points, so it requires an intermediate image when placed after
another filter.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Sequence, Union
import logging
import math

import numpy as np

from pixelstag.config import settings
from pixelstag.exceptions import KernelShapeError
from pixelstag.pixel import Pixel
from .base import Filter, Input, register_filter

if TYPE_CHECKING:
    from pixelstag.geometry import Point

logger = logging.getLogger(__name__)


class EdgeStrategy(Enum):
    """How a kernel treats neighbours outside of the image."""

    CONSTANT = 'constant'  # Use the kernel's border value
    EXTEND = 'extend'  # Clamp to the nearest edge pixel
    WRAP = 'wrap'  # Continue on the opposite side
    MIRROR = 'mirror'  # Reflect at the edge

    @classmethod
    def of(cls, value: EdgeStrategy | str) -> EdgeStrategy:
        if isinstance(value, EdgeStrategy):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown edge strategy: {value}") from None

    def map_dimension(self, value: int, max_index: int) -> int | None:
        """Map a possibly out-of-range coordinate to a valid index.

        :param value: The coordinate along one axis, may be negative.
        :param max_index: The largest valid index (size - 1).
        :returns: An index in ``[0, max_index]``, or None for CONSTANT when
            ``value`` is out of range, meaning "use the border value".
        """
        if 0 <= value <= max_index:
            return value
        if self is EdgeStrategy.CONSTANT:
            return None
        if self is EdgeStrategy.EXTEND:
            return max(0, min(value, max_index))
        if self is EdgeStrategy.WRAP:
            return value % (max_index + 1)
        # Mirror
        if value < 0:
            mirrored = -value
        else:
            mirrored = max_index - (value % (max_index + 1)) - 1
        return max(0, min(mirrored, max_index))


KernelData = Union[np.ndarray, Sequence[Sequence[float]]]
"Kernel weights: a 2D array or a sequence of equally long rows"


def _as_weights(data: KernelData) -> np.ndarray:
    if isinstance(data, np.ndarray):
        weights = np.array(data, dtype=np.float64)
    else:
        rows = [list(row) for row in data]
        if not rows:
            raise KernelShapeError("A kernel needs at least one row")
        cols = len(rows[0])
        for index, row in enumerate(rows):
            if len(row) != cols:
                raise KernelShapeError(
                    f"Kernel row {index} has {len(row)} weights, expected {cols}"
                )
        weights = np.array(rows, dtype=np.float64)
    if weights.ndim != 2:
        raise KernelShapeError(f"Kernel weights must be 2D, got shape {weights.shape}")
    if weights.size == 0:
        raise KernelShapeError("A kernel needs at least one weight")
    return weights


def _default_edge_strategy() -> EdgeStrategy:
    return EdgeStrategy.of(settings.DEFAULT_EDGE_STRATEGY)


@register_filter
@dataclass(eq=False)
class Kernel(Filter):
    """2-dimensional convolution kernel.

    data: Weights, ``rows`` x ``cols``
    edge_strategy: How neighbours outside of the image are resolved
    border: Value used for outside neighbours with EdgeStrategy.CONSTANT

    The output is the weighted sum of the neighbourhood for every channel.
    The kernel itself does not clamp, the evaluator does when writing to an
    integer image.
    """

    _requires_intermediate_image: ClassVar[bool] = True

    data: Any
    edge_strategy: EdgeStrategy = field(default_factory=_default_edge_strategy)
    border: float = 0.0

    def __post_init__(self):
        self.data = _as_weights(self.data)
        self.edge_strategy = EdgeStrategy.of(self.edge_strategy)

    @classmethod
    def new(cls, rows: int, cols: int) -> Kernel:
        """Create a new kernel with the given number of rows and columns, filled with zeros."""
        return cls(np.zeros((rows, cols)))

    @classmethod
    def square(cls, size: int) -> Kernel:
        """Create a new, square kernel filled with zeros."""
        return cls.new(size, size)

    @classmethod
    def create(cls, rows: int, cols: int, fn: Callable[[int, int], float]) -> Kernel:
        """Create a kernel and fill it by calling ``fn(col, row)`` for each cell."""
        return cls([[fn(i, j) for i in range(cols)] for j in range(rows)])

    @classmethod
    def gaussian(cls, size: int, std: float) -> Kernel:
        """Normalized gaussian blur kernel.

        size: Width and height, must be odd
        std: Standard deviation in pixels
        """
        if size % 2 == 0:
            raise ValueError(f"Gaussian kernel size must be odd, got {size}")
        std2 = std * std
        center = size // 2
        a = 1.0 / (2.0 * math.pi * std2)
        kernel = cls.create(
            size, size,
            lambda i, j: a * math.exp(-((i - center) ** 2 + (j - center) ** 2) / (2.0 * std2)),
        )
        kernel.normalize()
        return kernel

    @classmethod
    def gaussian_3x3(cls) -> Kernel:
        """3x3 pixel gaussian blur"""
        return cls.gaussian(3, 1.4)

    @classmethod
    def gaussian_5x5(cls) -> Kernel:
        """5x5 pixel gaussian blur"""
        return cls.gaussian(5, 1.4)

    @classmethod
    def gaussian_7x7(cls) -> Kernel:
        """7x7 pixel gaussian blur"""
        return cls.gaussian(7, 1.4)

    @classmethod
    def gaussian_9x9(cls) -> Kernel:
        """9x9 pixel gaussian blur"""
        return cls.gaussian(9, 1.4)

    @classmethod
    def sobel_x(cls) -> Kernel:
        return cls([[1.0, 0.0, -1.0], [2.0, 0.0, -2.0], [1.0, 0.0, -1.0]])

    @classmethod
    def sobel_y(cls) -> Kernel:
        return cls([[1.0, 2.0, 1.0], [0.0, 0.0, 0.0], [-1.0, -2.0, -1.0]])

    @classmethod
    def sobel(cls) -> Kernel:
        """Sobel X and Y combined"""
        return cls.sobel_x() + cls.sobel_y()

    @classmethod
    def laplacian(cls) -> Kernel:
        return cls([[0.0, -1.0, 0.0], [-1.0, 4.0, -1.0], [0.0, -1.0, 0.0]])

    @property
    def rows(self) -> int:
        return self.data.shape[0]

    @property
    def cols(self) -> int:
        return self.data.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    @property
    def sum(self) -> float:
        """Sum of all weights."""
        return float(self.data.sum())

    def normalize(self) -> None:
        """Divide all weights by their sum so the kernel preserves energy.

        A kernel whose weights sum to zero is left unchanged.
        """
        total = self.sum
        if total == 0.0:
            logger.debug(f"Skipping normalization of zero-sum {self.rows}x{self.cols} kernel")
            return
        self.data = self.data / total

    def normalized(self) -> Kernel:
        """A normalized copy of this kernel."""
        kernel = replace(self)
        kernel.normalize()
        return kernel

    def set_edge_strategy(self, edge_strategy: EdgeStrategy | str) -> None:
        """Change how the kernel processes images near edges."""
        self.edge_strategy = EdgeStrategy.of(edge_strategy)

    def with_edge_strategy(self, edge_strategy: EdgeStrategy | str, border: float | None = None) -> Kernel:
        """A copy of this kernel using another edge strategy."""
        return replace(
            self,
            edge_strategy=EdgeStrategy.of(edge_strategy),
            border=self.border if border is None else border,
        )

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        max_x = input.width - 1
        max_y = input.height - 1
        r2 = self.rows // 2
        c2 = self.cols // 2
        acc = np.zeros(input.color.channels)
        for j in range(self.rows):
            sy = self.edge_strategy.map_dimension(pt.y + j - r2, max_y)
            for i in range(self.cols):
                weight = self.data[j, i]
                sx = self.edge_strategy.map_dimension(pt.x + i - c2, max_x)
                if sx is None or sy is None:
                    acc += self.border * weight
                else:
                    acc += input.get_pixel((sx, sy)).data * weight
        Pixel(acc, input.color).copy_to(dest)

    def _combine(self, other: Kernel, op: Callable[[np.ndarray, np.ndarray], np.ndarray]) -> Kernel:
        if not isinstance(other, Kernel):
            return NotImplemented
        if self.shape != other.shape:
            raise KernelShapeError(
                f"Kernel shapes differ: {self.rows}x{self.cols} and {other.rows}x{other.cols}"
            )
        return replace(self, data=op(self.data, other.data))

    def __add__(self, other: Kernel) -> Kernel:
        return self._combine(other, np.add)

    def __sub__(self, other: Kernel) -> Kernel:
        return self._combine(other, np.subtract)

    def __mul__(self, other: Kernel) -> Kernel:
        return self._combine(other, np.multiply)

    def __truediv__(self, other: Kernel) -> Kernel:
        return self._combine(other, np.divide)

    def __getitem__(self, index: tuple[int, int]) -> float:
        """Weight at ``(row, col)``."""
        return float(self.data[index])

    def __eq__(self, other) -> bool:
        if not isinstance(other, Kernel):
            return NotImplemented
        return (
            self.edge_strategy is other.edge_strategy
            and self.border == other.border
            and np.array_equal(self.data, other.data)
        )

    def __hash__(self) -> int:
        # Adding 0.0 folds -0.0 into 0.0, matching np.array_equal
        return hash((self.edge_strategy, self.border, self.data.shape, (self.data + 0.0).tobytes()))

    def to_dict(self) -> dict[str, Any]:
        return {
            'type': self.type,
            'data': self.data.tolist(),
            'edge_strategy': self.edge_strategy.value,
            'border': self.border,
        }


__all__ = ['EdgeStrategy', 'Kernel', 'KernelData']
