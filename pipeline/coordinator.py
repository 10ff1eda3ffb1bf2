"""
Bounded worker pool for independent comparison units.

Units (page fingerprints, page-pair diffs) run on a thread pool with
throttled submission: only ``max_workers * in_flight_multiplier`` futures
are in flight at once, and more are submitted as they complete. Results are
returned in unit order, never in completion order.

Each unit is retried with tenacity. A unit that still fails is wrapped in
DiffUnitError and handed to the caller's failure handler, so one bad page
pair degrades to an inline "unavailable" entry instead of failing the run.

Usage:
    coordinator = DiffCoordinator(max_workers=4, retry_count=2, retry_delay=0.1)
    results = coordinator.run(pairs, compare_pair, token=token, on_failure=mark_unavailable)
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_fixed,
)

from comparison.errors import CancelledError, DiffUnitError
from config.comparison_config import ComparisonConfig
from utils.logging import logger

T = TypeVar("T")
R = TypeVar("R")

FailureHandler = Callable[[int, T, DiffUnitError], R]

# How often the submission loop wakes up to check for cancellation.
_POLL_INTERVAL = 0.05


class CancellationToken:
    """Cooperative cancellation flag shared by the caller and the workers."""

    def __init__(self) -> None:
        self.event = threading.Event()

    def cancel(self) -> None:
        self.event.set()

    @property
    def cancelled(self) -> bool:
        return self.event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.event.is_set():
            raise CancelledError("comparison cancelled")


class DiffCoordinator:
    """Runs units concurrently with retries, throttling and cancellation."""

    def __init__(
        self,
        max_workers: int = 4,
        retry_count: int = 2,
        retry_delay: float = 0.1,
        in_flight_multiplier: int = 2,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.retry_count = retry_count
        self.retry_delay = retry_delay
        self.max_in_flight = max_workers * in_flight_multiplier

    @classmethod
    def from_config(cls, config: ComparisonConfig) -> "DiffCoordinator":
        return cls(
            max_workers=config.max_concurrent_comparisons,
            retry_count=config.retry_count,
            retry_delay=config.retry_delay,
        )

    def run(
        self,
        units: Sequence[T],
        work: Callable[[T], R],
        *,
        token: Optional[CancellationToken] = None,
        on_failure: Optional[FailureHandler] = None,
    ) -> List[R]:
        """
        Run ``work`` on every unit.

        Args:
            units: Independent inputs, processed at most ``max_workers`` at a time
            work: Function applied to each unit
            token: Cancellation token; cancelling stops submission, cancels
                queued units and waits for running ones to finish
            on_failure: Called as ``on_failure(index, unit, error)`` when a unit
                exhausts its retries; its return value becomes the unit's result.
                Without a handler the DiffUnitError propagates.

        Returns:
            Results in the order of ``units``

        Raises:
            CancelledError: if the token was cancelled before all units finished
            DiffUnitError: if a unit failed and no handler was given
        """
        token = token or CancellationToken()
        token.raise_if_cancelled()
        total = len(units)
        if total == 0:
            return []

        pending: Deque[Tuple[int, T]] = deque(enumerate(units))
        in_flight: Dict[Future, int] = {}
        results: Dict[int, R] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="docalign") as executor:

            def refill() -> None:
                while pending and len(in_flight) < self.max_in_flight and not token.cancelled:
                    index, unit = pending.popleft()
                    in_flight[executor.submit(self._attempt, index, unit, work, token)] = index

            refill()
            while in_flight:
                done, _ = wait(list(in_flight), timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED)

                if token.cancelled:
                    for future in in_flight:
                        future.cancel()
                    break

                for future in done:
                    index = in_flight.pop(future)
                    try:
                        results[index] = future.result()
                    except DiffUnitError as exc:
                        if on_failure is None:
                            for other in in_flight:
                                other.cancel()
                            raise
                        logger.warning("Unit %d failed after %d attempts: %s",
                                       index, self.retry_count + 1, exc.cause)
                        results[index] = on_failure(index, units[index], exc)
                    except CancelledError:
                        token.cancel()

                refill()

        # Running units have finished once the executor has shut down.
        if token.cancelled:
            logger.info("Run cancelled with %d of %d units complete", len(results), total)
            raise CancelledError("comparison cancelled")

        return [results[index] for index in range(total)]

    def _attempt(self, index: int, unit: T, work: Callable[[T], R], token: CancellationToken) -> R:
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_count + 1) | stop_when_event_set(token.event),
            wait=wait_fixed(self.retry_delay),
            sleep=token.event.wait,
            retry=retry_if_not_exception_type(CancelledError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retrying(self._call, unit, work, token)
        except CancelledError:
            raise
        except Exception as exc:
            raise DiffUnitError(index, exc) from exc

    @staticmethod
    def _call(unit: T, work: Callable[[T], R], token: CancellationToken) -> R:
        token.raise_if_cancelled()
        return work(unit)
