"""Weighted page similarity from two fingerprints."""
from __future__ import annotations

from typing import AbstractSet, Sequence

import numpy as np

from comparison.models import Fingerprint, SimilarityScore


def jaccard(a: AbstractSet, b: AbstractSet) -> float:
    """
    Jaccard similarity of two shingle sets.

    Two empty sets are identical (1.0); exactly one empty set never matches (0.0).
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """1 - cosine distance, clamped to [0, 1]."""
    if tuple(a) == tuple(b):
        return 1.0
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        return 0.0
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 and norm_b == 0.0:
        return 1.0
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), 0.0, 1.0))


def score(
    fp_a: Fingerprint,
    fp_b: Fingerprint,
    content_weight: float = 0.7,
    visual_weight: float = 0.3,
) -> SimilarityScore:
    """
    Blend content and visual similarity of two pages.

    Args:
        fp_a: Fingerprint of the base page
        fp_b: Fingerprint of the compare page
        content_weight: Weight of the shingle Jaccard sub-score
        visual_weight: Weight of the signature cosine sub-score

    Returns:
        SimilarityScore with the combined value and both sub-scores
    """
    content = jaccard(fp_a.shingles, fp_b.shingles)
    visual = cosine(fp_a.visual_signature, fp_b.visual_signature)
    value = content_weight * content + visual_weight * visual
    # Identical pages must score exactly 1.0 whatever the weights.
    if abs(value - 1.0) < 1e-9:
        value = 1.0
    return SimilarityScore(value=min(1.0, max(0.0, value)), content=content, visual=visual)
