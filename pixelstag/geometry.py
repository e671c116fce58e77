"""
Integer grid geometry: :class:`Point` and :class:`Region`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

PointTypes = Union["Point", tuple[int, int]]
"Anything accepted where a point is expected"


@dataclass(frozen=True, slots=True)
class Point:
    """
    An integer ``(x, y)`` coordinate into an image's discrete grid.

    Coordinates are never negative. Negative offsets only exist transiently
    inside kernel evaluation and are resolved by the kernel's edge strategy
    before any buffer access.
    """

    x: int
    y: int

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Point coordinates must be non-negative, got ({self.x}, {self.y})")

    @classmethod
    def of(cls, value: PointTypes) -> Point:
        """Convert a tuple (or a Point) to a Point."""
        if isinstance(value, Point):
            return value
        return cls(int(value[0]), int(value[1]))

    def offset(self, dx: int, dy: int) -> Point:
        """The point shifted by ``(dx, dy)``."""
        return Point(self.x + dx, self.y + dy)

    def to_tuple(self) -> tuple[int, int]:
        return self.x, self.y

    def __iter__(self) -> Iterator[int]:
        yield self.x
        yield self.y


@dataclass(frozen=True, slots=True)
class Region:
    """
    An axis-aligned rectangle used to restrict evaluation to a sub-area.

    :ivar x: Left edge
    :ivar y: Top edge
    :ivar width: Width in pixels
    :ivar height: Height in pixels
    """

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Region origin must be non-negative, got ({self.x}, {self.y})")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Region size must be non-negative, got {self.width}x{self.height}")

    @classmethod
    def from_size(cls, width: int, height: int) -> Region:
        """A region covering a whole ``width`` x ``height`` buffer."""
        return cls(0, 0, width, height)

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y)

    @property
    def right(self) -> int:
        """First column right of the region (exclusive)."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """First row below the region (exclusive)."""
        return self.y + self.height

    def contains(self, pt: PointTypes) -> bool:
        px, py = pt
        return self.x <= px < self.right and self.y <= py < self.bottom

    def clipped(self, width: int, height: int) -> Region:
        """Intersect the region with a ``width`` x ``height`` buffer."""
        x = min(self.x, width)
        y = min(self.y, height)
        return Region(x, y, max(0, min(self.right, width) - x), max(0, min(self.bottom, height) - y))

    def points(self) -> Iterator[Point]:
        """Iterate over all points of the region in row-major order."""
        for y in range(self.y, self.bottom):
            for x in range(self.x, self.right):
                yield Point(x, y)

    def __len__(self) -> int:
        return self.width * self.height


__all__ = ["Point", "PointTypes", "Region"]
