from __future__ import annotations

import threading

import pytest

from auto_alert.engine import CycleError, ItemFailure, WorkerPool


def test_worker_pool_isolates_item_failures() -> None:
    def work(item: int) -> int:
        if item == 3:
            raise RuntimeError("boom")
        return item * 2

    outcome = WorkerPool(width=2, name="test").map(range(5), work)

    assert sorted(outcome.results) == [0, 2, 4, 8]
    assert [failure.key for failure in outcome.failures] == ["3"]
    assert not outcome.ok


def test_worker_pool_never_exceeds_width() -> None:
    lock = threading.Lock()
    active = 0
    peak = 0
    barrier = threading.Barrier(2, timeout=5)

    def work(item: int) -> int:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        try:
            if item < 2:
                barrier.wait()
        finally:
            with lock:
                active -= 1
        return item

    outcome = WorkerPool(width=2).map(range(6), work)

    assert outcome.ok
    assert len(outcome.results) == 6
    assert peak == 2


def test_worker_pool_skips_unstarted_items_after_stop() -> None:
    stop = threading.Event()
    seen: list[int] = []

    def work(item: int) -> int:
        seen.append(item)
        stop.set()
        return item

    outcome = WorkerPool(width=1).map(range(4), work, stop_event=stop)

    assert seen == [0]
    assert outcome.results == [0]
    assert outcome.skipped == 3


def test_worker_pool_empty_input() -> None:
    outcome = WorkerPool().map([], lambda item: item)
    assert outcome.results == []
    assert outcome.ok


def test_worker_pool_rejects_zero_width() -> None:
    with pytest.raises(ValueError):
        WorkerPool(width=0)


def test_cycle_error_names_every_failure() -> None:
    error = CycleError(
        [ItemFailure("a", RuntimeError("x")), ItemFailure("b", ValueError("y"))],
        label="scrape cycle",
    )
    assert error.keys == ["a", "b"]
    assert str(error) == "scrape cycle failed for 2 item(s): a: x; b: y"
