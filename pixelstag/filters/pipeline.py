# PixelStag Filters - Pipeline
"""
Composition of filters: :class:`Then`, :class:`Join`, :class:`AndThen` and
the list-based :class:`FilterPipeline`.

Composites are filters themselves, so evaluators never see the tree. The
central decision is made by :class:`Then`: when the second stage reads
neighbouring points, the first stage is materialized into an intermediate
image once per evaluation. Otherwise both stages are fused pixel by pixel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable
import logging

import numpy as np

from pixelstag.color import ColorModel
from pixelstag.exceptions import FilterSerializationError
from pixelstag.image import Image
from .base import Filter, Input, prepare_branches, register_filter

if TYPE_CHECKING:
    from pixelstag.geometry import Point
    from pixelstag.pixel import Pixel

logger = logging.getLogger(__name__)


def materialize(filter: Filter, input: Input, output: Image) -> Image:
    """Evaluate ``filter`` over the full extent of ``output`` into a new float image.

    The intermediate uses float64 elements so no precision or range is lost
    between stages.
    """
    from .executor import evaluate

    intermediate = Image.new(output.width, output.height, output.color, dtype=np.float64)
    logger.debug(
        f"Materializing {filter.type} into {output.width}x{output.height} intermediate image"
    )
    evaluate(filter, input, intermediate)
    return intermediate


@register_filter
@dataclass
class Then(Filter):
    """Sequential composition: ``b`` is applied to the output of ``a``.

    If ``b`` requires an intermediate image, ``a`` is evaluated over the whole
    output once in :meth:`before_compute` and ``b`` reads from that image.
    Otherwise ``a`` is computed into a scratch pixel at each point and ``b``
    sees that pixel as its input.
    """

    a: Filter
    b: Filter

    @property
    def requires_intermediate_image(self) -> bool:
        return self.a.requires_intermediate_image or self.b.requires_intermediate_image

    def supports_inplace(self) -> bool:
        return (
            not self.b.requires_intermediate_image
            and self.a.supports_inplace()
            and self.b.supports_inplace()
        )

    def before_compute(self, input: Input, output: Image) -> Input:
        if self.b.requires_intermediate_image:
            intermediate = materialize(self.a, input, output)
            return self.b.before_compute(input.with_image(intermediate), output)
        return prepare_branches(input, output, self.a, self.b)

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        if self.b.requires_intermediate_image:
            self.b.compute_at(pt, input, dest)
            return
        scratch = dest.copy()
        self.a.compute_at(pt, input.for_branch(self.a), scratch)
        self.b.compute_at(pt, input.for_branch(self.b).with_pixel(scratch), dest)


@register_filter
@dataclass
class AndThen(Filter):
    """Run ``a`` and then ``b`` on the same destination pixel.

    ``b`` sees the destination as ``a`` left it, but reads its input from the
    evaluation's sources, not from ``a``'s result.
    """

    a: Filter
    b: Filter

    @property
    def requires_intermediate_image(self) -> bool:
        return self.a.requires_intermediate_image or self.b.requires_intermediate_image

    def supports_inplace(self) -> bool:
        return (
            not self.requires_intermediate_image
            and self.a.supports_inplace()
            and self.b.supports_inplace()
        )

    def before_compute(self, input: Input, output: Image) -> Input:
        return prepare_branches(input, output, self.a, self.b)

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        self.a.compute_at(pt, input.for_branch(self.a), dest)
        self.b.compute_at(pt, input.for_branch(self.b), dest)


@dataclass
class Join(Filter):
    """Evaluate two filters independently and merge their pixels.

    Both results are converted to the working color model ``color`` (the
    destination's model if None) and passed to ``function(pt, a, b)``, whose
    result is written to the destination.

    Join holds a callable and can therefore not be serialized.
    """

    a: Filter
    b: Filter
    function: Callable[[Point, Pixel, Pixel], Pixel]
    color: ColorModel | None = None

    def __post_init__(self):
        if self.color is not None:
            self.color = ColorModel.of(self.color)

    @property
    def requires_intermediate_image(self) -> bool:
        return self.a.requires_intermediate_image or self.b.requires_intermediate_image

    def supports_inplace(self) -> bool:
        return (
            not self.requires_intermediate_image
            and self.a.supports_inplace()
            and self.b.supports_inplace()
        )

    def before_compute(self, input: Input, output: Image) -> Input:
        return prepare_branches(input, output, self.a, self.b)

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        model = self.color or dest.color
        pixel_a = dest.convert(model)
        pixel_b = pixel_a.copy()
        self.a.compute_at(pt, input.for_branch(self.a), pixel_a)
        self.b.compute_at(pt, input.for_branch(self.b), pixel_b)
        self.function(pt, pixel_a, pixel_b).copy_to(dest)

    def to_dict(self) -> dict[str, Any]:
        raise FilterSerializationError("Join holds a callable and cannot be serialized")


@register_filter
@dataclass
class FilterPipeline(Filter):
    """Chain of filters applied in sequence.

    Equivalent to nesting :class:`Then` from the left, so
    ``FilterPipeline([a, b, c])`` behaves like ``Then(Then(a, b), c)``. An
    empty pipeline copies its input.
    """

    filters: list[Filter] = field(default_factory=list)
    _chain: Any = field(default=None, init=False, repr=False, compare=False)

    def _composed(self) -> Filter:
        """The pipeline as a single composed filter, rebuilt when the list changed."""
        key = tuple(id(f) for f in self.filters)
        if self._chain is None or self._chain[0] != key:
            if not self.filters:
                from .color import Convert

                composed = Convert()
            else:
                composed = self.filters[0]
                for f in self.filters[1:]:
                    composed = Then(composed, f)
            self._chain = (key, composed)
        return self._chain[1]

    @property
    def requires_intermediate_image(self) -> bool:
        return any(f.requires_intermediate_image for f in self.filters)

    def supports_inplace(self) -> bool:
        return self._composed().supports_inplace()

    def before_compute(self, input: Input, output: Image) -> Input:
        return self._composed().before_compute(input, output)

    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        self._composed().compute_at(pt, input, dest)

    def append(self, filter: Filter) -> 'FilterPipeline':
        """Add filter to pipeline (chainable)."""
        self.filters.append(filter)
        return self

    def extend(self, filters: list[Filter]) -> 'FilterPipeline':
        """Add multiple filters to pipeline (chainable)."""
        self.filters.extend(filters)
        return self

    def __len__(self) -> int:
        return len(self.filters)


__all__ = ['Then', 'AndThen', 'Join', 'FilterPipeline', 'materialize']
