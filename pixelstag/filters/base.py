# PixelStag Filters - Base Classes
"""
Base classes for the filter system.

A filter computes one output pixel from a coordinate and an :class:`Input`.
Filters are dataclasses, immutable while being evaluated and safe to call
concurrently for different points. All registered filters support JSON
serialization.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Mapping, Sequence, Union
import json

from pixelstag.exceptions import EvaluationError, FilterSerializationError
from pixelstag.geometry import PointTypes

if TYPE_CHECKING:
    from pixelstag.color import ColorModelTypes
    from pixelstag.geometry import Point, Region
    from pixelstag.image import Image
    from pixelstag.pixel import Pixel
    from .pipeline import AndThen, Join, Then
    from .scheduler import AsyncFilter, AsyncMode


class Input:
    """
    Read-only view of everything a filter may look at during one evaluation.

    Bundles the source images with at most one piece of cached state: a
    single precomputed pixel or a precomputed intermediate image. Lookups
    without an explicit source index prefer the cached image, then the
    cached pixel, then the first source image.

    Composite filters additionally keep the inputs prepared for their
    branches, keyed by the branch filter, see :meth:`for_branch`.
    """

    __slots__ = ("images", "pixel", "image", "_branches")

    def __init__(
        self,
        images: Sequence[Image],
        pixel: Pixel | None = None,
        image: Image | None = None,
        branches: Mapping[int, Input] | None = None,
    ):
        """
        :param images: The source images, at least one.
        :param pixel: Optional precomputed pixel.
        :param image: Optional precomputed intermediate image.
        :param branches: Prepared inputs of branch filters.
        """
        if pixel is not None and image is not None:
            raise ValueError("An Input caches either a pixel or an image, not both")
        self.images: tuple[Image, ...] = tuple(images)
        "The source images"
        if not self.images:
            raise EvaluationError("A filter evaluation needs at least one source image")
        self.pixel = pixel
        "Cached single pixel"
        self.image = image
        "Cached intermediate image"
        self._branches: Mapping[int, Input] = branches or {}

    @classmethod
    def of(cls, value: InputTypes) -> Input:
        """Wrap an Image or a sequence of Images into an Input."""
        if isinstance(value, Input):
            return value
        from pixelstag.image import Image

        if isinstance(value, Image):
            return cls([value])
        return cls(list(value))

    def with_pixel(self, pixel: Pixel) -> Input:
        """Same sources, with ``pixel`` as the only cached state."""
        return Input(self.images, pixel=pixel, branches=self._branches)

    def with_image(self, image: Image) -> Input:
        """Same sources, with ``image`` as the only cached state."""
        return Input(self.images, image=image, branches=self._branches)

    def with_branches(self, branches: Mapping[int, Input]) -> Input:
        merged = dict(self._branches)
        merged.update(branches)
        return Input(self.images, pixel=self.pixel, image=self.image, branches=merged)

    def for_branch(self, filter: Filter) -> Input:
        """The input prepared for ``filter``, or this input if none was stored."""
        return self._branches.get(id(filter), self)

    @property
    def primary(self) -> Image:
        """The image default lookups are answered from (ignoring a cached pixel)."""
        return self.image if self.image is not None else self.images[0]

    @property
    def width(self) -> int:
        return self.primary.width

    @property
    def height(self) -> int:
        return self.primary.height

    @property
    def color(self):
        """Color model of default lookups."""
        if self.image is None and self.pixel is not None:
            return self.pixel.color
        return self.primary.color

    def get_pixel(self, pt: PointTypes, index: int | None = None) -> Pixel:
        """Look up a pixel.

        :param pt: The coordinate.
        :param index: Explicit source image index. If None, the cached image,
            the cached pixel or source image 0 is used, in this order.
        :returns: An independent copy of the pixel.
        """
        if index is not None:
            return self.images[index].get_pixel(pt)
        if self.image is not None:
            return self.image.get_pixel(pt)
        if self.pixel is not None:
            return self.pixel.copy()
        return self.images[0].get_pixel(pt)

    def get_f(self, pt: PointTypes, channel: int, index: int | None = None) -> float:
        """Look up a single normalized channel value, same order as :meth:`get_pixel`."""
        if index is not None:
            return self.images[index].get_f(pt, channel)
        if self.image is not None:
            return self.image.get_f(pt, channel)
        if self.pixel is not None:
            return self.pixel[channel]
        return self.images[0].get_f(pt, channel)

    def new_pixel(self) -> Pixel:
        """A zero pixel in the color model of default lookups."""
        from pixelstag.pixel import Pixel

        return Pixel.zeros(self.color)

    def __len__(self) -> int:
        return len(self.images)


InputTypes = Union[Input, "Image", Sequence["Image"]]
"Anything accepted as the source of an evaluation"


# Global registry
FILTER_REGISTRY: dict[str, type['Filter']] = {}


def register_filter(cls: type['Filter']) -> type['Filter']:
    """Decorator to register a filter class."""
    FILTER_REGISTRY[cls.__name__] = cls
    # Also register lowercase version
    FILTER_REGISTRY[cls.__name__.lower()] = cls
    return cls


def prepare_branches(input: Input, output: Image, *branches: Filter) -> Input:
    """Run ``before_compute`` of each branch and remember the inputs they return.

    Branches that need no preparation are not stored, so
    :meth:`Input.for_branch` falls back to the shared input for them.
    """
    prepared = {}
    for branch in branches:
        branch_input = branch.before_compute(input, output)
        if branch_input is not input:
            prepared[id(branch)] = branch_input
    return input.with_branches(prepared) if prepared else input


@dataclass
class Filter(ABC):
    """Base class for all filters.

    Filters declare their evaluation requirements via class variables:
        _requires_intermediate_image: The filter reads points other than the
            one being computed, so an upstream stage must be fully
            materialized before it runs.
        _supports_inplace: The filter reads exactly the point it writes and
            may therefore run with the same image as source and destination.

    Example:
        @register_filter
        @dataclass
        class Half(Filter):
            _supports_inplace: ClassVar[bool] = True

            def compute_at(self, pt, input, dest):
                (input.get_pixel(pt) * 0.5).copy_to(dest)
    """

    _requires_intermediate_image: ClassVar[bool] = False
    _supports_inplace: ClassVar[bool] = False

    @abstractmethod
    def compute_at(self, pt: Point, input: Input, dest: Pixel) -> None:
        """Compute the output pixel at ``pt``.

        :param pt: The coordinate being computed.
        :param input: The sources and cached state of this evaluation.
        :param dest: The output pixel. It holds the destination's current
            value on entry, the filter overwrites it (or leaves it alone).
        """
        pass

    def before_compute(self, input: Input, output: Image) -> Input:
        """Prepare an evaluation. Runs once before any :meth:`compute_at`.

        This is the only place allowed to materialize intermediate buffers.

        :param input: The evaluation's input.
        :param output: The destination image.
        :returns: The input to pass to every :meth:`compute_at` call.
        """
        return input

    @property
    def requires_intermediate_image(self) -> bool:
        """Whether upstream results must be fully materialized before this filter runs."""
        return self._requires_intermediate_image

    def supports_inplace(self) -> bool:
        """Whether this filter may run with aliased source and destination."""
        return self._supports_inplace

    @property
    def type(self) -> str:
        """Filter type name for serialization."""
        return self.__class__.__name__

    def eval(self, inputs: InputTypes, output: Image) -> None:
        """Evaluate the filter over the whole output image."""
        from .executor import evaluate

        evaluate(self, inputs, output)

    def eval_partial(self, region: Region, inputs: InputTypes, output: Image) -> None:
        """Evaluate the filter on part of the output image."""
        from .executor import evaluate_region

        evaluate_region(self, region, inputs, output)

    def eval_in_place(self, image: Image) -> None:
        """Evaluate the filter with ``image`` as source and destination."""
        from .executor import evaluate_in_place

        evaluate_in_place(self, image)

    def eval_parallel(self, inputs: InputTypes, output: Image, num_workers: int | None = None) -> None:
        """Evaluate the filter with rows spread over worker threads."""
        from .executor import evaluate_parallel

        evaluate_parallel(self, inputs, output, num_workers=num_workers)

    def to_async(self, mode: AsyncMode | str | None, inputs: InputTypes, output: Image) -> AsyncFilter:
        """Convert the evaluation into a resumable :class:`AsyncFilter` task."""
        from .scheduler import AsyncFilter

        return AsyncFilter(self, mode, inputs, output)

    def then(self, other: Filter) -> Then:
        """Feed this filter's output into ``other``."""
        from .pipeline import Then

        return Then(self, other)

    def and_then(self, other: Filter) -> AndThen:
        """Run ``other`` after this filter on the same destination pixel."""
        from .pipeline import AndThen

        return AndThen(self, other)

    def join(
        self,
        other: Filter,
        function: Callable[[Point, Pixel, Pixel], Pixel],
        color: ColorModelTypes | None = None,
    ) -> Join:
        """Combine this filter's and ``other``'s pixels with ``function``."""
        from .pipeline import Join

        return Join(self, other, function, color)

    def to_dict(self) -> dict[str, Any]:
        """Serialize filter to dictionary."""
        data = {}
        # Only include fields that are actual dataclass fields
        for f in fields(self):
            if not f.name.startswith('_'):
                data[f.name] = _serialize_value(getattr(self, f.name), self.type, f.name)
        data['type'] = self.type
        return data

    def to_json(self) -> str:
        """Serialize filter to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Filter:
        """Deserialize filter from dictionary."""
        data = data.copy()  # Don't modify original
        filter_type = data.pop('type', cls.__name__)

        # Find filter class
        filter_cls = FILTER_REGISTRY.get(filter_type) or FILTER_REGISTRY.get(filter_type.lower())
        if filter_cls is None:
            raise FilterSerializationError(f"Unknown filter type: {filter_type}")

        kwargs = {key: _deserialize_value(value) for key, value in data.items()}
        return filter_cls(**kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> Filter:
        """Deserialize filter from JSON string."""
        return cls.from_dict(json.loads(json_str))


def _serialize_value(value: Any, owner: str, name: str) -> Any:
    if isinstance(value, Filter):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize_value(v, owner, name) for v in value]
    # Handle enums - prefer string value, fallback to lowercase name
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name.lower()
    if callable(value):
        raise FilterSerializationError(f"{owner}.{name} holds a callable and cannot be serialized")
    return value


def _deserialize_value(value: Any) -> Any:
    if isinstance(value, dict) and 'type' in value:
        return Filter.from_dict(value)
    if isinstance(value, list):
        return [_deserialize_value(v) for v in value]
    return value


__all__ = [
    'Filter',
    'Input',
    'InputTypes',
    'FILTER_REGISTRY',
    'register_filter',
    'prepare_branches',
]
