# PixelStag Filters - Cooperative Scheduling
"""
Resumable filter evaluation.

An :class:`AsyncFilter` splits one evaluation into small steps, a row or a
single pixel each, so a host loop can interleave it with other work::

    task = Kernel.gaussian_3x3().to_async("row", image, output)
    while not task.done:
        task.step()
        handle_events()

:func:`eval_async` drives such a task from an asyncio coroutine.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterator
import asyncio
import logging

from pixelstag.config import settings
from pixelstag.exceptions import EvaluationError
from pixelstag.geometry import Point
from .executor import compute_point, compute_row, prepare

if TYPE_CHECKING:
    from pixelstag.image import Image
    from .base import Filter, Input, InputTypes

logger = logging.getLogger(__name__)


class AsyncMode(Enum):
    """Granularity of one step."""

    PIXEL = 'pixel'
    ROW = 'row'

    @classmethod
    def of(cls, value: AsyncMode | str | None) -> AsyncMode:
        """Parse a mode, None selects the configured default."""
        if value is None:
            value = settings.ASYNC_MODE
        if isinstance(value, AsyncMode):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown async mode: {value}") from None


class AsyncStatus(Enum):
    PENDING = 'pending'
    READY = 'ready'


class AsyncFilter:
    """A filter evaluation driven one step at a time.

    Points are visited in the same row-major order and with the same
    per-point contract as the synchronous evaluators, so a completed task
    leaves ``output`` identical to :func:`~pixelstag.filters.executor.evaluate`.

    A task on an empty output (zero width or height) has no work and is
    done from the start: it takes zero steps and never reports READY.

    :param filter: The filter to evaluate.
    :param mode: Step granularity, see :class:`AsyncMode`.
    :param inputs: Source image(s) or a prepared Input.
    :param output: The destination image.
    """

    def __init__(
        self,
        filter: Filter,
        mode: AsyncMode | str | None,
        inputs: InputTypes,
        output: Image,
    ):
        self.filter = filter
        self.mode = AsyncMode.of(mode)
        self.inputs = inputs
        self.output = output
        self._input: Input | None = None
        self._x = 0
        self._y = 0
        self._steps = 0
        self._done = output.width == 0 or output.height == 0

    @property
    def done(self) -> bool:
        """True once READY has been reported, or from the start for an empty output."""
        return self._done

    @property
    def steps(self) -> int:
        """Number of steps performed so far."""
        return self._steps

    @property
    def cursor(self) -> Point:
        """The next point to compute."""
        return Point(self._x, self._y)

    def step(self) -> AsyncStatus:
        """Perform one unit of work.

        :returns: PENDING while rows remain, READY after the last one.
        :raises EvaluationError: if the task is already done.
        """
        if self._done:
            raise EvaluationError(f"{self.filter.type} task already completed")
        if self._input is None:
            self._input = prepare(self.filter, self.inputs, self.output)
        width = self.output.width
        height = self.output.height
        if self.mode is AsyncMode.ROW:
            compute_row(self.filter, self._input, self.output, self._y)
            self._y += 1
        else:
            compute_point(self.filter, self._input, self.output, Point(self._x, self._y))
            self._x += 1
            if self._x >= width:
                self._x = 0
                self._y += 1
        self._steps += 1
        if self._y < height:
            return AsyncStatus.PENDING
        self._done = True
        logger.debug(f"{self.filter.type} task completed after {self._steps} {self.mode.value} steps")
        return AsyncStatus.READY

    def run(self) -> int:
        """Step until READY and return the total number of steps."""
        while not self._done:
            self.step()
        return self._steps

    def __iter__(self) -> Iterator[AsyncStatus]:
        while not self._done:
            yield self.step()


async def eval_async(
    filter: Filter,
    mode: AsyncMode | str | None,
    inputs: InputTypes,
    output: Image,
) -> Image:
    """Evaluate a filter step by step, yielding to the event loop between steps."""
    for status in AsyncFilter(filter, mode, inputs, output):
        if status is AsyncStatus.PENDING:
            await asyncio.sleep(0)
    return output


__all__ = ['AsyncMode', 'AsyncStatus', 'AsyncFilter', 'eval_async']
