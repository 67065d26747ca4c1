"""Sequential task execution with progress reporting.

Import commits and export compression process one item at a time so that at
most one decoded image is held in memory and results keep input order.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[float], None]


@dataclass
class TaskOutcome(Generic[R]):
    """Result of one step: either `value` or the recoverable `error` it raised."""

    index: int
    value: R | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SequentialTaskRunner:
    """Runs a step over items strictly in order, one at a time.

    Exceptions listed in `recoverable` are captured per item and the loop
    continues; anything else propagates and ends the run.
    """

    def __init__(self, on_progress: ProgressCallback | None = None) -> None:
        self._on_progress = on_progress

    def run(
        self,
        items: Sequence[T],
        step: Callable[[T], R],
        recoverable: tuple[type[BaseException], ...] = (),
        on_progress: ProgressCallback | None = None,
    ) -> list[TaskOutcome[R]]:
        """Apply `step` to each item and report `done / total` after each one."""
        progress = on_progress or self._on_progress
        total = len(items)
        outcomes: list[TaskOutcome[R]] = []
        for index, item in enumerate(items):
            try:
                outcomes.append(TaskOutcome(index=index, value=step(item)))
            except recoverable as ex:
                logger.warning("Task {} of {} failed: {}", index + 1, total, ex)
                outcomes.append(TaskOutcome(index=index, error=ex))
            if progress is not None:
                progress((index + 1) / total)
        return outcomes
