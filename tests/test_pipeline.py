"""
Tests for filter composition: Then, AndThen, Join and FilterPipeline.
"""

import json

import numpy as np
import pytest

from pixelstag import ColorModel, FilterSerializationError, Image, Pixel, Point
from pixelstag.filters import (
    AndThen,
    Blend,
    Brightness,
    Contrast,
    Convert,
    Crop,
    EdgeStrategy,
    Filter,
    FilterPipeline,
    GammaLin,
    GammaLog,
    Input,
    Invert,
    Join,
    Kernel,
    Then,
    ToGrayscale,
)


def _float_copy(image: Image) -> Image:
    return Image(image.to_float(), image.color)


class TestThen:
    """Tests for sequential composition."""

    def test_fused_matches_manual(self, gradient_image):
        """Fused Then equals feeding a's pixel into b."""
        a = Contrast(0.8)
        b = GammaLog(2.2)
        composed = Then(a, b)
        assert not composed.requires_intermediate_image

        output = gradient_image.new_like_with_type(np.float64)
        composed.eval(gradient_image, output)

        source = Input.of(gradient_image)
        for pt in gradient_image.points():
            scratch = Pixel.zeros(ColorModel.RGB)
            a.compute_at(pt, source, scratch)
            expected = Pixel.zeros(ColorModel.RGB)
            b.compute_at(pt, source.with_pixel(scratch), expected)
            assert np.allclose(output.get_pixel(pt).data, expected.data)

    def test_invert_twice_is_identity(self, gradient_image):
        """Test invert twice is identity."""
        output = gradient_image.new_like_with_type(np.float64)
        Invert().then(Invert()).eval(gradient_image, output)
        assert np.allclose(output.pixels, gradient_image.to_float())

    def test_gamma_round_trip(self):
        """Test gamma round trip."""
        image = Image(np.full((1, 1), 0.3, dtype=np.float64))
        output = image.new_like()
        GammaLin(2.2).then(GammaLog(2.2)).eval(image, output)
        assert output.get_f((0, 0), 0) == pytest.approx(0.3)

    def test_kernel_second_uses_intermediate(self, gradient_image):
        """Then(a, kernel) convolves the materialized result of a."""
        kernel = Kernel.gaussian_3x3().with_edge_strategy(EdgeStrategy.EXTEND)
        composed = Invert().then(kernel)
        assert composed.requires_intermediate_image
        assert not composed.supports_inplace()

        output = gradient_image.new_like_with_type(np.float64)
        composed.eval(gradient_image, output)

        inverted = gradient_image.new_like_with_type(np.float64)
        Invert().eval(gradient_image, inverted)
        expected = inverted.new_like()
        kernel.eval(inverted, expected)
        assert np.allclose(output.pixels, expected.pixels)

    def test_kernel_first_is_fused(self, gradient_image):
        """Then(kernel, point filter) is evaluated per pixel."""
        kernel = Kernel.gaussian_3x3().with_edge_strategy(EdgeStrategy.MIRROR)
        output = gradient_image.new_like_with_type(np.float64)
        kernel.then(Invert()).eval(gradient_image, output)

        blurred = gradient_image.new_like_with_type(np.float64)
        kernel.eval(gradient_image, blurred)
        assert np.allclose(output.pixels, 1.0 - blurred.pixels)

    def test_nested_kernels(self, gradient_image):
        """Test a chain with two kernels."""
        blur = Kernel.gaussian_3x3().with_edge_strategy(EdgeStrategy.EXTEND)
        edges = Kernel.laplacian().with_edge_strategy(EdgeStrategy.EXTEND)
        output = gradient_image.new_like_with_type(np.float64)
        Invert().then(blur).then(edges).eval(gradient_image, output)

        step = _float_copy(gradient_image)
        for f in (Invert(), blur, edges):
            result = step.new_like()
            f.eval(step, result)
            step = result
        assert np.allclose(output.pixels, step.pixels)

    def test_uses_destination_model(self, gradient_image):
        """Scratch pixels use the destination's color model."""
        output = gradient_image.new_like_with_color(ColorModel.GRAY)
        ToGrayscale().then(Invert()).eval(gradient_image, output)
        luma = gradient_image.to_float() @ np.array([0.21, 0.72, 0.07])
        assert np.allclose(output.pixels[:, :, 0], 1.0 - luma, atol=1e-6)

    def test_inplace_capability(self):
        """Test in-place capability of Then."""
        assert Then(Invert(), Brightness(0.5)).supports_inplace()
        assert not Then(Invert(), Kernel.laplacian()).supports_inplace()

    def test_blend_after_invert(self, gradient_image, second_image):
        """Blend reads the upstream pixel and source image 1."""
        output = gradient_image.new_like_with_type(np.float64)
        Invert().then(Blend()).eval([gradient_image, second_image], output)
        expected = ((1.0 - gradient_image.to_float()) + 0.5) / 2.0
        assert np.allclose(output.pixels, expected)


class TestAndThen:
    """Tests for AndThen."""

    def test_second_sees_sources(self, gradient_image):
        """The second filter reads the sources, not the first result."""
        output = gradient_image.new_like_with_type(np.float64)
        Invert().and_then(Brightness(0.5)).eval(gradient_image, output)
        # Brightness overwrites the destination from the source image
        assert np.allclose(output.pixels, gradient_image.to_float() * 0.5)

    def test_first_result_kept_when_second_is_noop(self, gradient_image):
        """Points skipped by the second filter keep the first result."""
        output = gradient_image.new_like_with_type(np.float64)
        AndThen(Invert(), Crop(0, 0, 4, 4)).eval(gradient_image, output)
        source = gradient_image.to_float()
        assert np.allclose(output.pixels[:4, :4], source[:4, :4])
        assert np.allclose(output.pixels[4:, :], 1.0 - source[4:, :])


class TestJoin:
    """Tests for Join."""

    def test_function_receives_both_results(self, gradient_image):
        """Test function receives both results."""
        calls = []

        def combine(pt: Point, a: Pixel, b: Pixel) -> Pixel:
            calls.append(pt)
            return a * 0.25 + b * 0.75

        joined = Invert().join(Brightness(0.5), combine)
        output = gradient_image.new_like_with_type(np.float64)
        joined.eval(gradient_image, output)

        source = gradient_image.to_float()
        expected = (1.0 - source) * 0.25 + source * 0.5 * 0.75
        assert np.allclose(output.pixels, expected)
        assert len(calls) == gradient_image.width * gradient_image.height

    def test_working_model(self, gradient_image):
        """Both operands are converted to the working model."""
        seen = []

        def keep_first(pt, a, b):
            seen.append((a.color, b.color))
            return a

        joined = Join(Invert(), Invert(), keep_first, color="hsv")
        output = gradient_image.new_like_with_type(np.float64)
        joined.eval(gradient_image, output)
        assert set(seen) == {(ColorModel.HSV, ColorModel.HSV)}
        assert np.allclose(output.pixels, 1.0 - gradient_image.to_float(), atol=1e-7)

    def test_grayscale_operand_in_hsv(self):
        """A grayscale branch arrives as a gray HSV pixel in an HSV join."""
        seen = []

        def keep_first(pt, a, b):
            seen.append(a)
            return a

        image = Image(np.array([[[0.8, 0.4, 0.2]]]), ColorModel.RGB)
        output = image.new_like()
        Join(ToGrayscale(), Convert(), keep_first, color=ColorModel.HSV).eval(image, output)
        assert seen[0].color is ColorModel.HSV
        assert np.allclose(seen[0].data, [0.0, 0.0, 0.47])
        assert np.allclose(output.pixels[0, 0], [0.47, 0.47, 0.47])

    def test_not_serializable(self):
        """Join cannot be serialized."""
        joined = Invert().join(Invert(), lambda pt, a, b: a)
        with pytest.raises(FilterSerializationError):
            joined.to_dict()


class TestFilterPipeline:
    """Tests for FilterPipeline."""

    def test_matches_nested_then(self, gradient_image):
        """A pipeline equals a left fold of Then."""
        filters = [Contrast(1.2), Kernel.gaussian_3x3().with_edge_strategy("extend"), Invert()]
        pipeline = FilterPipeline(list(filters))
        assert len(pipeline) == 3
        assert pipeline.requires_intermediate_image

        output = gradient_image.new_like_with_type(np.float64)
        pipeline.eval(gradient_image, output)
        expected = gradient_image.new_like_with_type(np.float64)
        Then(Then(filters[0], filters[1]), filters[2]).eval(gradient_image, expected)
        assert np.array_equal(output.pixels, expected.pixels)

    def test_empty_copies_input(self, gradient_image):
        """Test empty copies input."""
        output = gradient_image.new_like()
        FilterPipeline().eval(gradient_image, output)
        assert output == gradient_image

    def test_append_rebuilds_chain(self, gradient_image):
        """The composed chain follows list changes."""
        pipeline = FilterPipeline().append(Invert())
        assert pipeline.supports_inplace()
        output = gradient_image.new_like_with_type(np.float64)
        pipeline.eval(gradient_image, output)
        assert np.allclose(output.pixels, 1.0 - gradient_image.to_float())

        pipeline.extend([Invert(), Kernel.laplacian()])
        assert not pipeline.supports_inplace()
        assert len(pipeline) == 3

    def test_serialization(self):
        """Test pipeline serialization roundtrip."""
        pipeline = FilterPipeline([Brightness(1.5), Kernel.sobel(), GammaLog(1.8)])
        data = json.loads(pipeline.to_json())
        assert data["type"] == "FilterPipeline"
        assert [f["type"] for f in data["filters"]] == ["Brightness", "Kernel", "GammaLog"]
        assert "_chain" not in data

        restored = Filter.from_json(pipeline.to_json())
        assert isinstance(restored, FilterPipeline)
        assert restored.filters[0] == Brightness(1.5)
        assert restored.filters[1] == Kernel.sobel()
        assert restored.filters[2] == GammaLog(1.8)

    def test_unknown_type(self):
        """Unknown filter types raise FilterSerializationError."""
        with pytest.raises(FilterSerializationError):
            Filter.from_dict({"type": "Posterize"})
