"""Page alignment between two document versions."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from comparison.models import Fingerprint, PagePair, SimilarityScore
from comparison.similarity import score as default_scorer
from config.comparison_config import ComparisonConfig
from utils.logging import logger


Scorer = Callable[[Fingerprint, Fingerprint, float, float], SimilarityScore]
Candidate = Tuple[int, int, SimilarityScore]  # (base index, compare index, score)


@dataclass
class AlignmentStats:
    scored_pairs: int = 0
    fallback_scans: int = 0
    matched: int = 0
    added: int = 0
    deleted: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class PageAligner:
    """
    Greedy windowed page matcher.

    Each base page is scored against compare pages within ±W of its index;
    only if nothing in the window reaches the threshold are the remaining
    compare pages scanned. All accepted candidates are then committed
    highest-score first, so conflicts resolve in favour of the most confident
    matches. Reordered pages are supported through the fallback scan.

    Usage:
        aligner = PageAligner(config)
        pairs = aligner.align(base_fingerprints, compare_fingerprints)
    """

    def __init__(self, config: Optional[ComparisonConfig] = None, scorer: Scorer = default_scorer):
        self.config = config or ComparisonConfig()
        self.scorer = scorer
        self.stats = AlignmentStats()

    def align(
        self,
        base: Sequence[Fingerprint],
        compare: Sequence[Fingerprint],
    ) -> List[PagePair]:
        """
        Align pages between two documents.

        Args:
            base: Fingerprints of the base document, in page order
            compare: Fingerprints of the compare document, in page order

        Returns:
            PagePairs covering every page of both documents exactly once
        """
        self.stats = AlignmentStats()
        logger.info("Aligning %d pages -> %d pages", len(base), len(compare))

        if not base or not compare:
            pairs = [PagePair(fp.page_number, None) for fp in base]
            pairs += [PagePair(None, fp.page_number) for fp in compare]
            self._record(pairs)
            return pairs

        candidates: List[Candidate] = []
        for i, fp in enumerate(base):
            candidates.extend(self._candidates_for(i, fp, compare))

        committed = self._commit(candidates)
        self._pair_unavailable(base, compare, committed)
        pairs = self._build_pairs(base, compare, committed)
        self._record(pairs)
        logger.debug("Alignment stats: %s", self.stats.to_dict())
        return pairs

    def _candidates_for(
        self,
        i: int,
        fp: Fingerprint,
        compare: Sequence[Fingerprint],
    ) -> List[Candidate]:
        if fp.content_unavailable:
            return []
        window = self.config.max_candidates_per_page
        lo = max(0, i - window)
        hi = min(len(compare), i + window + 1)

        accepted = self._score_range(i, fp, compare, range(lo, hi))
        if accepted:
            return accepted

        outside = [j for j in range(len(compare)) if j < lo or j >= hi]
        if not outside:
            return []
        self.stats.fallback_scans += 1
        logger.debug("No in-window match for base page %d, scanning %d outside pages", fp.page_number, len(outside))
        return self._score_range(i, fp, compare, outside)

    def _score_range(self, i: int, fp: Fingerprint, compare: Sequence[Fingerprint], indexes) -> List[Candidate]:
        threshold = self.config.similarity_threshold
        accepted: List[Candidate] = []
        for j in indexes:
            if compare[j].content_unavailable:
                continue
            result = self.scorer(fp, compare[j], self.config.content_weight, self.config.visual_weight)
            self.stats.scored_pairs += 1
            if result.value < threshold:
                continue
            accepted.append((i, j, result))
        return accepted

    @staticmethod
    def _commit(candidates: List[Candidate]) -> dict:
        """Greedy highest-score-first commit; ties go to the lower base, then compare, index."""
        ordered = sorted(candidates, key=lambda c: (-c[2].value, c[0], c[1]))
        committed: dict = {}
        used_compare: set = set()
        for i, j, result in ordered:
            if i in committed or j in used_compare:
                continue
            committed[i] = (j, result)
            used_compare.add(j)
        return committed

    def _pair_unavailable(
        self,
        base: Sequence[Fingerprint],
        compare: Sequence[Fingerprint],
        committed: dict,
    ) -> None:
        """
        Pair pages that could not be extracted by position.

        An unreadable page has nothing to score, so it takes the nearest
        uncommitted page on the other side within the candidate window
        (same index first, then the lower index). The pair carries no score.
        """
        window = self.config.max_candidates_per_page
        free_base = [i for i in range(len(base)) if i not in committed]
        used_compare = {j for j, _ in committed.values()}
        free_compare = [j for j in range(len(compare)) if j not in used_compare]

        def nearest(index: int, free: List[int]) -> Optional[int]:
            near = [k for k in free if abs(k - index) <= window]
            return min(near, key=lambda k: (abs(k - index), k)) if near else None

        for i in free_base:
            if not base[i].content_unavailable:
                continue
            j = nearest(i, free_compare)
            if j is None:
                continue
            committed[i] = (j, None)
            free_compare.remove(j)
            logger.debug("Unreadable base page %d paired by position with compare page %d",
                         base[i].page_number, compare[j].page_number)

        for j in list(free_compare):
            if not compare[j].content_unavailable:
                continue
            i = nearest(j, [k for k in range(len(base)) if k not in committed])
            if i is None:
                continue
            committed[i] = (j, None)
            free_compare.remove(j)
            logger.debug("Unreadable compare page %d paired by position with base page %d",
                         compare[j].page_number, base[i].page_number)

    @staticmethod
    def _build_pairs(
        base: Sequence[Fingerprint],
        compare: Sequence[Fingerprint],
        committed: dict,
    ) -> List[PagePair]:
        # Base order first; remember the compare index behind every pair.
        ordered: List[Tuple[Optional[int], PagePair]] = []
        for i, fp in enumerate(base):
            if i in committed:
                j, result = committed[i]
                ordered.append((j, PagePair(fp.page_number, compare[j].page_number, result)))
            else:
                ordered.append((None, PagePair(fp.page_number, None)))

        used = {j for j, _ in committed.values()}
        for j, fp in enumerate(compare):
            if j in used:
                continue
            position = next(
                (pos for pos, (k, _) in enumerate(ordered) if k is not None and k > j),
                len(ordered),
            )
            ordered.insert(position, (j, PagePair(None, fp.page_number)))

        return [pair for _, pair in ordered]

    def _record(self, pairs: List[PagePair]) -> None:
        for pair in pairs:
            if pair.is_matched:
                self.stats.matched += 1
            elif pair.is_added:
                self.stats.added += 1
            else:
                self.stats.deleted += 1


def align_pages(
    base: Sequence[Fingerprint],
    compare: Sequence[Fingerprint],
    config: Optional[ComparisonConfig] = None,
    scorer: Scorer = default_scorer,
) -> List[PagePair]:
    """Convenience wrapper around ``PageAligner.align``."""
    return PageAligner(config, scorer).align(base, compare)
