"""Performance profiling utilities."""
from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator

from utils.logging import logger


@dataclass
class Timing:
    name: str
    duration: float = 0.0
    metadata: dict = field(default_factory=dict)


@contextmanager
def track_time(name: str, **metadata) -> Generator[Timing, None, None]:
    """Context manager that measures a stage and logs its duration."""
    timing = Timing(name=name, metadata=metadata)
    start = time.perf_counter()
    try:
        yield timing
    finally:
        timing.duration = time.perf_counter() - start
        logger.debug("Timing: %s took %.3f seconds %s", name, timing.duration, metadata or "")
