"""Result storage contract for the serving layer."""
from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol

from comparison.models import ComparisonResult


class ResultStore(Protocol):
    """Keeps finished results by job id. The core itself never stores anything."""

    def put(self, job_id: str, result: ComparisonResult) -> None: ...

    def get(self, job_id: str) -> Optional[ComparisonResult]: ...

    def evict(self, job_id: str) -> bool: ...


class InMemoryResultStore:
    """Process-local ResultStore, suitable for tests and single-worker servers."""

    def __init__(self) -> None:
        self._results: Dict[str, ComparisonResult] = {}
        self._lock = threading.Lock()

    def put(self, job_id: str, result: ComparisonResult) -> None:
        with self._lock:
            self._results[job_id] = result

    def get(self, job_id: str) -> Optional[ComparisonResult]:
        with self._lock:
            return self._results.get(job_id)

    def evict(self, job_id: str) -> bool:
        with self._lock:
            return self._results.pop(job_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
