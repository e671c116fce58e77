"""
Evaluation strategies for filters.

Provides:
- Full-image and region-restricted single-threaded evaluation
- In-place evaluation for filters that read only the point they write
- Data-parallel evaluation with rows spread over a thread pool

All strategies call ``before_compute`` exactly once and then visit
coordinates in row-major order. At each point the destination's current
value is loaded, handed to ``compute_at`` and written back, converting to
the destination's element type.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable

from pixelstag.config import settings
from pixelstag.exceptions import InPlaceEvaluationError
from pixelstag.geometry import Point, Region
from .base import Input

if TYPE_CHECKING:
    from pixelstag.image import Image
    from .base import Filter, InputTypes

logger = logging.getLogger(__name__)


def compute_point(filter: Filter, input: Input, output: Image, pt: Point) -> None:
    """Compute a single output point and store it in ``output``."""
    dest = output.get_pixel(pt)
    filter.compute_at(pt, input, dest)
    output.set_pixel(pt, dest)


def compute_row(filter: Filter, input: Input, output: Image, y: int, x_range: range | None = None) -> None:
    """Compute the points of row ``y`` (optionally only the columns in ``x_range``)."""
    for x in x_range if x_range is not None else range(output.width):
        compute_point(filter, input, output, Point(x, y))


def prepare(filter: Filter, inputs: InputTypes, output: Image) -> Input:
    """Wrap ``inputs`` and run the filter's ``before_compute`` hook."""
    return filter.before_compute(Input.of(inputs), output)


def _run(filter: Filter, input: Input, output: Image, points: Iterable[Point]) -> None:
    for pt in points:
        compute_point(filter, input, output, pt)


def evaluate(filter: Filter, inputs: InputTypes, output: Image) -> Image:
    """Evaluate a filter over every point of ``output``.

    :param filter: The filter to run.
    :param inputs: Source image(s) or a prepared Input.
    :param output: The destination image.
    :returns: The destination image.
    """
    input = prepare(filter, inputs, output)
    _run(filter, input, output, output.points())
    return output


def evaluate_region(filter: Filter, region: Region, inputs: InputTypes, output: Image) -> Image:
    """Evaluate a filter on the points of ``region`` only.

    Points of the region lying outside of ``output`` are skipped.
    """
    input = prepare(filter, inputs, output)
    _run(filter, input, output, region.clipped(output.width, output.height).points())
    return output


def evaluate_in_place(filter: Filter, image: Image) -> Image:
    """Evaluate a filter with ``image`` as its only source and as destination.

    Every point is read before it is written. This is only correct for
    filters that read no location other than the point being computed, so
    filters without the in-place capability are rejected.

    :raises InPlaceEvaluationError: if ``filter.supports_inplace()`` is False.
    """
    if not filter.supports_inplace():
        raise InPlaceEvaluationError(
            f"{filter.type} reads neighbouring points and cannot be evaluated in-place"
        )
    return evaluate(filter, image, image)


class ParallelEvaluator:
    """Data-parallel evaluator using ThreadPoolExecutor.

    Output rows are partitioned across the workers, so no two workers ever
    write the same location. Sources are shared read-only.

    Example::

        with ParallelEvaluator(num_workers=8) as evaluator:
            evaluator.evaluate(Kernel.gaussian_5x5(), image, output)

    :param num_workers: Number of parallel workers (settings / CPU count if None)
    """

    def __init__(self, num_workers: int | None = None):
        self._num_workers = num_workers or settings.NUM_WORKERS or os.cpu_count() or 4
        self._executor: ThreadPoolExecutor | None = None

    @property
    def num_workers(self) -> int:
        return self._num_workers

    def evaluate(self, filter: Filter, inputs: InputTypes, output: Image) -> Image:
        """Evaluate a filter over every point of ``output`` using the worker pool.

        ``before_compute`` runs once on the calling thread, before any
        worker starts.
        """
        if self._executor is None:
            raise RuntimeError("ParallelEvaluator must be used as a context manager")
        input = prepare(filter, inputs, output)
        logger.debug(
            f"Evaluating {filter.type} on {output.height} rows with {self._num_workers} workers"
        )
        futures: list[Future] = [
            self._executor.submit(compute_row, filter, input, output, y)
            for y in range(output.height)
        ]
        for future in futures:
            future.result()
        return output

    def __enter__(self) -> 'ParallelEvaluator':
        self._executor = ThreadPoolExecutor(max_workers=self._num_workers)
        return self

    def __exit__(self, *args) -> None:
        if self._executor:
            self._executor.shutdown(wait=True)
            self._executor = None


def evaluate_parallel(
    filter: Filter,
    inputs: InputTypes,
    output: Image,
    num_workers: int | None = None,
) -> Image:
    """Evaluate a filter with a temporary :class:`ParallelEvaluator`."""
    with ParallelEvaluator(num_workers) as evaluator:
        return evaluator.evaluate(filter, inputs, output)


__all__ = [
    'compute_point',
    'compute_row',
    'prepare',
    'evaluate',
    'evaluate_region',
    'evaluate_in_place',
    'evaluate_parallel',
    'ParallelEvaluator',
]
