"""
Main orchestrator: end-to-end comparison of two extracted documents.

Provides a single entrypoint that:
1. Validates the options and both page lists
2. Builds page fingerprints in parallel (cached per document id)
3. Aligns pages between the two documents
4. Runs the text, image, font and style differs on every matched pair
5. Compares document metadata
6. Aggregates everything into an immutable ComparisonResult
"""
from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from comparison.aggregator import aggregate, page_existence_difference
from comparison.alignment import AlignmentStats, PageAligner
from comparison.errors import DiffUnitError
from comparison.fingerprint import build_fingerprint
from comparison.font_comparison import diff_fonts
from comparison.image_comparison import diff_images
from comparison.metadata_comparison import diff_metadata
from comparison.models import (
    ComparisonResult,
    Difference,
    Fingerprint,
    PageComparison,
    PageModel,
    PagePair,
)
from comparison.style_comparison import diff_styles
from comparison.text_comparison import diff_text
from config.comparison_config import ComparisonConfig
from pipeline.cache import ComparisonCache
from pipeline.coordinator import CancellationToken, DiffCoordinator
from utils.logging import logger
from utils.performance import track_time
from utils.validation import validate_pages

Differ = Callable[[PageModel, PageModel, ComparisonConfig], List[Difference]]
PairUnit = Tuple[int, PagePair]

DEFAULT_DIFFERS: Tuple[Differ, ...] = (diff_text, diff_images, diff_fonts, diff_styles)

ConfigInput = Union[ComparisonConfig, Mapping[str, Any], None]


class DocumentComparator:
    """
    Reusable comparison runner bound to one validated config.

    Usage:
        comparator = DocumentComparator({"similarityThreshold": 0.6})
        result = comparator.compare(base_pages, compare_pages)
    """

    def __init__(
        self,
        config: ConfigInput = None,
        cache: Optional[ComparisonCache] = None,
        differs: Sequence[Differ] = DEFAULT_DIFFERS,
    ):
        self.config = ComparisonConfig.build(config)
        self.cache = cache
        self.differs = tuple(differs)
        self.coordinator = DiffCoordinator.from_config(self.config)
        self.alignment_stats: Optional[AlignmentStats] = None

    def compare(
        self,
        base_pages: Optional[Sequence[PageModel]],
        compare_pages: Optional[Sequence[PageModel]],
        *,
        base_id: Optional[str] = None,
        compare_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ComparisonResult:
        """
        Compare two documents.

        Args:
            base_pages: Ordered pages of the base document
            compare_pages: Ordered pages of the compare document
            base_id: Stable document id; enables caching together with compare_id
            compare_id: Stable document id of the compare document
            cancel_token: Cancelling it aborts the run with CancelledError

        Returns:
            ComparisonResult covering every page of both documents

        Raises:
            ComparisonError: if either page list is missing or malformed
            CancelledError: if the run was cancelled
        """
        token = cancel_token or CancellationToken()
        base = validate_pages(base_pages, "base")
        compare = validate_pages(compare_pages, "compare")
        token.raise_if_cancelled()
        logger.info("Comparing %d vs %d pages", len(base), len(compare))

        with track_time("fingerprints", pages=len(base) + len(compare)):
            base_fps = self._fingerprints(base, base_id, token)
            compare_fps = self._fingerprints(compare, compare_id, token)

        token.raise_if_cancelled()
        with track_time("alignment"):
            aligner = PageAligner(self.config)
            pairs = aligner.align(base_fps, compare_fps)
            self.alignment_stats = aligner.stats

        base_lookup = {page.page_number: page for page in base}
        compare_lookup = {page.page_number: page for page in compare}

        def compare_unit(unit: PairUnit) -> PageComparison:
            index, pair = unit
            return self._compare_pair(index, pair, base_lookup, compare_lookup, base_id, compare_id)

        with track_time("page_diffs", pairs=len(pairs)):
            comparisons = self.coordinator.run(
                list(enumerate(pairs)),
                compare_unit,
                token=token,
                on_failure=_unavailable_pair,
            )

        token.raise_if_cancelled()
        with track_time("metadata"):
            metadata = diff_metadata(_document_metadata(base), _document_metadata(compare))

        with track_time("aggregate"):
            result = aggregate(comparisons, metadata, base, compare)

        logger.info(
            "Comparison complete: %d pairs (%d matched, %d added, %d deleted, %d unavailable), %d differences",
            len(result.pages),
            result.summary.matched_pairs,
            result.summary.added_pages,
            result.summary.deleted_pages,
            result.summary.unavailable_pairs,
            result.summary.total,
        )
        return result

    def _fingerprints(
        self,
        pages: List[PageModel],
        document_id: Optional[str],
        token: CancellationToken,
    ) -> List[Fingerprint]:
        config = self.config

        def build(page: PageModel) -> Fingerprint:
            def factory() -> Fingerprint:
                return build_fingerprint(page, config.shingle_size, config.signature_length)

            if self.cache is not None and document_id is not None:
                return self.cache.fingerprint(document_id, page.page_number, factory)
            return factory()

        return self.coordinator.run(pages, build, token=token)

    def _compare_pair(
        self,
        index: int,
        pair: PagePair,
        base_lookup: Mapping[int, PageModel],
        compare_lookup: Mapping[int, PageModel],
        base_id: Optional[str],
        compare_id: Optional[str],
    ) -> PageComparison:
        if pair.is_added:
            page = compare_lookup[pair.compare_page]
            return PageComparison(index, pair, differences=(page_existence_difference(pair, page),))
        if pair.is_deleted:
            page = base_lookup[pair.base_page]
            return PageComparison(index, pair, differences=(page_existence_difference(pair, page),))

        page_a = base_lookup[pair.base_page]
        page_b = compare_lookup[pair.compare_page]
        for page, label in ((page_a, "base"), (page_b, "compare")):
            if page.content_unavailable:
                reason = f"{label} page {page.page_number}: {page.unavailable_reason or 'content unavailable'}"
                logger.warning("Skipping pair %d: %s", index, reason)
                return PageComparison(index, pair, status="unavailable", unavailable_reason=reason)

        def run_differs() -> Tuple[Difference, ...]:
            diffs: List[Difference] = []
            for differ in self.differs:
                diffs.extend(differ(page_a, page_b, self.config))
            return tuple(diffs)

        if self.cache is not None and base_id is not None and compare_id is not None:
            key = (base_id, compare_id, pair.base_page, pair.compare_page, self.config.digest())
            differences = self.cache.pair_result(key, run_differs)
        else:
            differences = run_differs()
        return PageComparison(index, pair, differences=differences)


def _unavailable_pair(index: int, unit: PairUnit, error: DiffUnitError) -> PageComparison:
    _, pair = unit
    return PageComparison(index, pair, status="unavailable", unavailable_reason=str(error.cause))


def _document_metadata(pages: Sequence[PageModel]) -> Mapping[str, str]:
    """Document metadata travels on the first page."""
    return pages[0].metadata if pages else {}


def compare(
    base_pages: Optional[Sequence[PageModel]],
    compare_pages: Optional[Sequence[PageModel]],
    config: ConfigInput = None,
    *,
    base_id: Optional[str] = None,
    compare_id: Optional[str] = None,
    cache: Optional[ComparisonCache] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> ComparisonResult:
    """
    Compare two extracted documents (convenience wrapper around DocumentComparator).

    Args:
        base_pages: Ordered pages of the base document
        compare_pages: Ordered pages of the compare document
        config: ComparisonConfig, a mapping of its options (camelCase accepted),
            or None for the environment defaults
        base_id: Stable id of the base document (enables caching)
        compare_id: Stable id of the compare document (enables caching)
        cache: Shared ComparisonCache
        cancel_token: Token that aborts the run when cancelled

    Raises:
        ConfigError: invalid options, before any work starts
        ComparisonError: missing or malformed page lists
        CancelledError: the run was cancelled
    """
    comparator = DocumentComparator(config, cache=cache)
    return comparator.compare(
        base_pages,
        compare_pages,
        base_id=base_id,
        compare_id=compare_id,
        cancel_token=cancel_token,
    )
