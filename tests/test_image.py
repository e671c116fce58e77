"""
Tests for the Image buffer.
"""

import numpy as np
import PIL.Image
import pytest

from pixelstag import ColorModel, Image, Pixel, Point, Region
from pixelstag.filters import Invert


class TestImageConstruction:
    """Tests for creating images."""

    def test_new(self):
        """Test Image.new defaults."""
        image = Image.new(4, 3, ColorModel.RGBA)
        assert image.size == (4, 3)
        assert image.channels == 4
        assert image.dtype == np.float32
        assert image.region == Region(0, 0, 4, 3)

    def test_2d_array_is_gray(self):
        """2D arrays become single channel images."""
        image = Image(np.zeros((2, 5), dtype=np.uint8))
        assert image.color is ColorModel.GRAY
        assert image.width == 5
        assert image.height == 2

    def test_unsupported_dtype(self):
        """Test unsupported dtype."""
        with pytest.raises(ValueError):
            Image(np.zeros((2, 2, 3), dtype=np.int32))

    def test_channel_mismatch(self):
        """Channel count must match the color model."""
        with pytest.raises(ValueError):
            Image(np.zeros((2, 2, 3), dtype=np.float32), ColorModel.RGBA)


class TestImageAccess:
    """Tests for normalized pixel access."""

    def test_uint8_normalized(self):
        """Test uint8 normalized."""
        image = Image(np.full((2, 2, 3), 255, dtype=np.uint8))
        assert image.get_f((1, 1), 0) == pytest.approx(1.0)
        assert np.allclose(image.get_pixel(Point(0, 0)).data, [1.0, 1.0, 1.0])

    def test_uint16_normalized(self):
        """Test uint16 normalized."""
        image = Image(np.full((1, 1, 1), 65535, dtype=np.uint16))
        assert image.get_f((0, 0), 0) == pytest.approx(1.0)

    def test_integer_write_clamps(self):
        """Test integer write clamps."""
        image = Image(np.zeros((1, 2, 3), dtype=np.uint8))
        image.set_pixel((0, 0), Pixel([1.5, -0.5, 0.5]))
        assert image.pixels[0, 0].tolist() == [255, 0, 128]

    def test_float_write_does_not_clamp(self):
        """Test float write does not clamp."""
        image = Image.new(1, 1, ColorModel.GRAY, dtype=np.float64)
        image.set_f((0, 0), 0, 1.5)
        assert image.get_f((0, 0), 0) == pytest.approx(1.5)

    def test_set_pixel_converts(self):
        """Test set pixel converts."""
        image = Image.new(1, 1, ColorModel.RGBA)
        image.set_pixel((0, 0), Pixel([0.5]))
        assert np.allclose(image.get_pixel((0, 0)).data, [0.5, 0.5, 0.5, 1.0])

    def test_get_pixel_is_copy(self, gradient_image):
        """Test get pixel is copy."""
        px = gradient_image.get_pixel((3, 2))
        px[0] = 99.0
        assert gradient_image.get_f((3, 2), 0) != 99.0

    def test_in_bounds(self):
        """Test in bounds."""
        image = Image.new(3, 2)
        assert image.in_bounds((2, 1))
        assert not image.in_bounds((3, 0))

    def test_iter_pixels(self, gradient_image):
        """Test iter pixels."""
        items = list(gradient_image.iter_pixels(Region(14, 6, 5, 5)))
        assert [pt for pt, _ in items] == [Point(14, 6), Point(15, 6), Point(14, 7), Point(15, 7)]


class TestImageDerived:
    """Tests for derived images and conversions."""

    def test_new_like(self, noise_image):
        """Test new like."""
        other = noise_image.new_like()
        assert other.size == noise_image.size
        assert other.dtype == noise_image.dtype
        assert other.color is noise_image.color
        assert not other.pixels.any()

    def test_new_like_with_color_and_type(self, noise_image):
        """Test new like with color and type."""
        assert noise_image.new_like_with_color("gray").channels == 1
        assert noise_image.new_like_with_type(np.float64).dtype == np.float64

    def test_converted(self, gradient_image):
        """Test conversion to grayscale."""
        gray = gradient_image.converted(ColorModel.GRAY)
        assert gray.color is ColorModel.GRAY
        expected = gradient_image.to_float() @ np.array([0.21, 0.72, 0.07])
        assert np.allclose(gray.pixels[:, :, 0], expected)

    def test_pil_round_trip(self, noise_image):
        """Test PIL conversion roundtrip."""
        pil_image = noise_image.to_pil()
        assert pil_image.mode == "RGBA"
        assert pil_image.size == (12, 10)
        back = Image.from_pil(pil_image)
        assert back == noise_image

    def test_from_pil_gray(self):
        """Test from pil gray."""
        image = Image.from_pil(PIL.Image.new("L", (3, 2), 128))
        assert image.color is ColorModel.GRAY
        assert image.get_f((0, 0), 0) == pytest.approx(128 / 255)

    def test_apply(self, gradient_image):
        """Test applying a filter to a new image."""
        result = gradient_image.apply(Invert())
        assert np.allclose(result.to_float(), 1.0 - gradient_image.to_float(), atol=1e-6)
        assert result is not gradient_image

    def test_copy_and_equality(self, noise_image):
        """Test copy and equality."""
        other = noise_image.copy()
        assert other == noise_image
        other.pixels[0, 0, 0] ^= 1
        assert other != noise_image
