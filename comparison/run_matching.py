"""Pairing of text runs that occupy the same position on two pages."""
from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Sequence, Tuple

from comparison.models import TextRun
from utils.text_normalization import normalize_text


@dataclass(frozen=True)
class RunKey:
    """Normalized text plus grid-rounded coordinates; hashable and exact."""
    text: str
    x: int
    y: int


def run_key(run: TextRun, grid: float) -> RunKey:
    return RunKey(normalize_text(run.text), round(run.x / grid), round(run.y / grid))


def match_runs(
    runs_a: Sequence[TextRun],
    runs_b: Sequence[TextRun],
    tolerance: float = 2.0,
) -> List[Tuple[TextRun, TextRun]]:
    """
    Pair runs with the same text at the same (or nearly the same) position.

    Exact RunKey matches are taken first, in reading order. Runs left over
    are paired with the closest unmatched run carrying the same normalized
    text, provided it lies within ``tolerance`` points.
    """
    by_key: Dict[RunKey, Deque[int]] = defaultdict(deque)
    for idx, run in enumerate(runs_b):
        key = run_key(run, tolerance)
        if key.text:
            by_key[key].append(idx)

    pairs: Dict[int, int] = {}
    used_b: set = set()
    leftovers: List[int] = []

    for idx_a, run in enumerate(runs_a):
        key = run_key(run, tolerance)
        if not key.text:
            continue
        queue = by_key.get(key)
        while queue and queue[0] in used_b:
            queue.popleft()
        if queue:
            idx_b = queue.popleft()
            pairs[idx_a] = idx_b
            used_b.add(idx_b)
        else:
            leftovers.append(idx_a)

    for idx_a in leftovers:
        run_a = runs_a[idx_a]
        text_a = normalize_text(run_a.text)
        nearby = [
            (max(abs(run_a.x - run_b.x), abs(run_a.y - run_b.y)), idx_b)
            for idx_b, run_b in enumerate(runs_b)
            if idx_b not in used_b and normalize_text(run_b.text) == text_a
        ]
        nearby = [item for item in nearby if item[0] <= tolerance]
        if nearby:
            _, best = min(nearby)
            pairs[idx_a] = best
            used_b.add(best)

    return [(runs_a[a], runs_b[b]) for a, b in sorted(pairs.items())]
