from __future__ import annotations

import threading
import time

import pytest


def test_results_keep_unit_order():
    from pipeline.coordinator import DiffCoordinator

    def work(unit):
        time.sleep(0.02 * (5 - unit))
        return unit * 10

    results = DiffCoordinator(max_workers=4).run(list(range(6)), work)
    assert results == [0, 10, 20, 30, 40, 50]


def test_empty_units():
    from pipeline.coordinator import DiffCoordinator

    assert DiffCoordinator().run([], lambda unit: unit) == []


def test_concurrency_is_bounded():
    from pipeline.coordinator import DiffCoordinator

    lock = threading.Lock()
    active = [0]
    peak = [0]

    def work(unit):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
        time.sleep(0.01)
        with lock:
            active[0] -= 1
        return unit

    DiffCoordinator(max_workers=2).run(list(range(12)), work)
    assert peak[0] <= 2


def test_transient_failure_is_retried():
    from pipeline.coordinator import DiffCoordinator

    attempts = []

    def flaky(unit):
        attempts.append(unit)
        if len(attempts) < 3:
            raise RuntimeError("transient")
        return "ok"

    coordinator = DiffCoordinator(max_workers=1, retry_count=2, retry_delay=0)
    assert coordinator.run(["pair"], flaky) == ["ok"]
    assert len(attempts) == 3


def test_exhausted_retries_go_to_failure_handler():
    from comparison.errors import DiffUnitError
    from pipeline.coordinator import DiffCoordinator

    failures = []

    def work(unit):
        if unit == "bad":
            raise ValueError("broken page")
        return unit.upper()

    def on_failure(index, unit, error):
        failures.append((index, unit, error))
        return "unavailable"

    coordinator = DiffCoordinator(max_workers=2, retry_count=1, retry_delay=0)
    results = coordinator.run(["a", "bad", "c"], work, on_failure=on_failure)

    assert results == ["A", "unavailable", "C"]
    index, unit, error = failures[0]
    assert (index, unit) == (1, "bad")
    assert isinstance(error, DiffUnitError)
    assert isinstance(error.cause, ValueError)
    assert error.pair_index == 1


def test_failure_without_handler_propagates():
    from comparison.errors import DiffUnitError
    from pipeline.coordinator import DiffCoordinator

    def work(unit):
        raise RuntimeError("nope")

    with pytest.raises(DiffUnitError):
        DiffCoordinator(max_workers=1, retry_count=0, retry_delay=0).run([1], work)


def test_cancelled_before_start():
    from comparison.errors import CancelledError
    from pipeline.coordinator import CancellationToken, DiffCoordinator

    token = CancellationToken()
    token.cancel()
    calls = []

    with pytest.raises(CancelledError):
        DiffCoordinator().run([1, 2], calls.append, token=token)
    assert calls == []


def test_cancel_during_run_returns_no_result():
    from comparison.errors import CancelledError
    from pipeline.coordinator import CancellationToken, DiffCoordinator

    token = CancellationToken()
    started = []

    def work(unit):
        started.append(unit)
        if unit == 0:
            token.cancel()
        time.sleep(0.01)
        return unit

    with pytest.raises(CancelledError):
        DiffCoordinator(max_workers=1).run(list(range(50)), work, token=token)
    assert len(started) < 50


def test_cancellation_stops_retries():
    from pipeline.coordinator import CancellationToken, DiffCoordinator
    from comparison.errors import CancelledError

    token = CancellationToken()
    attempts = []

    def work(unit):
        attempts.append(unit)
        token.cancel()
        raise RuntimeError("fails while cancelling")

    coordinator = DiffCoordinator(max_workers=1, retry_count=5, retry_delay=0)
    with pytest.raises(CancelledError):
        coordinator.run([1], work, token=token, on_failure=lambda i, u, e: None)
    assert len(attempts) == 1


def test_cancellation_interrupts_retry_delay():
    from comparison.errors import CancelledError
    from pipeline.coordinator import CancellationToken, DiffCoordinator

    token = CancellationToken()
    failed = threading.Event()

    def work(unit):
        failed.set()
        raise RuntimeError("transient")

    def cancel_after_first_failure():
        failed.wait(5)
        time.sleep(0.05)
        token.cancel()

    canceller = threading.Thread(target=cancel_after_first_failure)
    canceller.start()
    started = time.monotonic()
    with pytest.raises(CancelledError):
        DiffCoordinator(max_workers=1, retry_count=3, retry_delay=30).run(
            [1], work, token=token, on_failure=lambda i, u, e: None
        )
    canceller.join()
    assert time.monotonic() - started < 5
