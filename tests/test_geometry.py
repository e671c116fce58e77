"""
Tests for Point and Region.
"""

import pytest

from pixelstag import Point, Region


class TestPoint:
    """Tests for Point."""

    def test_negative_rejected(self):
        """Negative coordinates raise ValueError."""
        with pytest.raises(ValueError):
            Point(-1, 0)
        with pytest.raises(ValueError):
            Point(0, -3)

    def test_of_tuple(self):
        """Test Point.of with tuples and points."""
        pt = Point.of((3, 4))
        assert pt == Point(3, 4)
        assert Point.of(pt) is pt

    def test_unpack_and_offset(self):
        """Test unpack and offset."""
        x, y = Point(2, 5)
        assert (x, y) == (2, 5)
        assert Point(2, 5).offset(1, -2) == Point(3, 3)
        assert Point(2, 5).to_tuple() == (2, 5)

    def test_hashable(self):
        """Points are usable as set members."""
        assert len({Point(1, 1), Point(1, 1), Point(2, 1)}) == 2


class TestRegion:
    """Tests for Region."""

    def test_row_major_points(self):
        """Test points are yielded row by row."""
        region = Region(1, 2, 3, 2)
        assert list(region.points()) == [
            Point(1, 2), Point(2, 2), Point(3, 2),
            Point(1, 3), Point(2, 3), Point(3, 3),
        ]
        assert len(region) == 6

    def test_bounds(self):
        """Test right, bottom and contains."""
        region = Region(1, 2, 3, 2)
        assert region.right == 4
        assert region.bottom == 4
        assert region.origin == Point(1, 2)
        assert region.contains((3, 3))
        assert not region.contains((4, 3))

    def test_clipped(self):
        """Test intersection with a buffer size."""
        assert Region(5, 5, 10, 10).clipped(8, 7) == Region(5, 5, 3, 2)
        assert len(Region(20, 20, 5, 5).clipped(8, 8)) == 0

    def test_invalid(self):
        """Negative origin or size raises ValueError."""
        with pytest.raises(ValueError):
            Region(0, 0, -1, 2)
        with pytest.raises(ValueError):
            Region(-1, 0, 1, 1)
