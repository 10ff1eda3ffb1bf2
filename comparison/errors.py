"""Error taxonomy for a comparison run."""
from __future__ import annotations

from typing import Optional


class ComparisonError(Exception):
    """Base class; raised directly for unrecoverable input (e.g. a missing document)."""


class ExtractionError(ComparisonError):
    """A page (or whole document) could not be read by the extractor."""

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


class DiffUnitError(ComparisonError):
    """The differs for one page pair kept failing after all retries."""

    def __init__(self, pair_index: int, cause: BaseException):
        super().__init__(f"Pair {pair_index} failed: {cause}")
        self.pair_index = pair_index
        self.cause = cause


class ConfigError(ComparisonError):
    """Invalid weights or thresholds. Fatal before any work starts."""


class CancelledError(ComparisonError):
    """The run was cancelled; it has no valid output."""
