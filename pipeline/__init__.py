"""Pipeline module - orchestrates end-to-end document comparison."""
from pipeline.cache import ComparisonCache, LRUCache
from pipeline.compare_documents import DocumentComparator, compare
from pipeline.coordinator import CancellationToken, DiffCoordinator
from pipeline.store import InMemoryResultStore, ResultStore

__all__ = [
    "compare",
    "DocumentComparator",
    "CancellationToken",
    "DiffCoordinator",
    "ComparisonCache",
    "LRUCache",
    "ResultStore",
    "InMemoryResultStore",
]
