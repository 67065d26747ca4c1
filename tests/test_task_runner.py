from __future__ import annotations

import pytest

from core.errors import CodecError, StoreError
from core.services.task_runner import SequentialTaskRunner


def test_runs_in_order_and_reports_progress() -> None:
    seen: list[float] = []
    order: list[int] = []
    outcomes = SequentialTaskRunner(on_progress=seen.append).run([3, 1, 2], order.append)
    assert order == [3, 1, 2]
    assert seen == [1 / 3, 2 / 3, 1.0]
    assert all(o.ok for o in outcomes)


def test_recoverable_errors_are_captured() -> None:
    def step(n: int) -> int:
        if n == 2:
            raise StoreError("boom")
        return n * 10

    outcomes = SequentialTaskRunner().run([1, 2, 3], step, recoverable=(StoreError,))
    assert [o.value for o in outcomes] == [10, None, 30]
    assert isinstance(outcomes[1].error, StoreError)


def test_other_errors_propagate() -> None:
    def step(_: int) -> None:
        raise CodecError("nope")

    with pytest.raises(CodecError):
        SequentialTaskRunner().run([1], step, recoverable=(StoreError,))


def test_empty_input_reports_nothing() -> None:
    seen: list[float] = []
    assert SequentialTaskRunner().run([], lambda x: x, on_progress=seen.append) == []
    assert seen == []
