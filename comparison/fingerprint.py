"""Page fingerprints: text shingles plus a small visual signature."""
from __future__ import annotations

import hashlib
from typing import FrozenSet, List

import numpy as np

from comparison.models import Fingerprint, PageModel
from utils.text_normalization import tokenize

# Fixed slots at the head of the visual signature; the rest are image-hash buckets.
_FIXED_SLOTS = 8
_MAX_RUNS = 200.0
_MAX_IMAGES = 10.0
_MAX_FONTS = 10.0


def build_fingerprint(
    page: PageModel,
    shingle_size: int = 3,
    signature_length: int = 16,
) -> Fingerprint:
    """
    Build a comparable fingerprint for one page.

    Never fails: pages without text or images (including pages whose content
    could not be extracted) yield empty-but-valid fingerprints.

    Args:
        page: Extracted page content
        shingle_size: Words per shingle
        signature_length: Length of the visual signature vector

    Returns:
        Fingerprint, deterministic for identical input
    """
    if page.content_unavailable:
        return Fingerprint(
            page_number=page.page_number,
            shingles=frozenset(),
            visual_signature=tuple(round(float(v), 9) for v in _empty_signature(page, signature_length)),
            content_unavailable=True,
        )

    words = tokenize(page.full_text)
    return Fingerprint(
        page_number=page.page_number,
        shingles=text_shingles(words, shingle_size),
        visual_signature=visual_signature(page, signature_length),
        text_run_count=len(page.text_runs),
        image_count=len(page.images),
        word_count=len(words),
        font_names=frozenset(
            {run.font_name for run in page.text_runs if run.font_name}
            | {font.name for font in page.fonts}
        ),
    )


def text_shingles(words: List[str], size: int) -> FrozenSet[str]:
    """Overlapping ``size``-word n-grams; short texts become a single shingle."""
    if not words:
        return frozenset()
    if len(words) < size:
        return frozenset({" ".join(words)})
    return frozenset(" ".join(words[i:i + size]) for i in range(len(words) - size + 1))


def visual_signature(page: PageModel, length: int = 16) -> tuple:
    """
    Lightweight "looks similar" vector derived from layout and images.

    Layout: [aspect, text density, image count, image coverage, text coverage,
    text centroid x, text centroid y, font count], followed by buckets fed by a
    stable digest of each image hash. All components are in [0, 1].
    """
    vector = _empty_signature(page, length)
    area = float(page.width * page.height)

    runs = page.text_runs
    images = page.images
    vector[1] = min(1.0, len(runs) / _MAX_RUNS)
    vector[2] = min(1.0, len(images) / _MAX_IMAGES)

    if area > 0:
        vector[3] = min(1.0, sum(img.width * img.height for img in images) / area)
        vector[4] = min(1.0, sum(run.width * run.height for run in runs) / area)

    if runs and page.width > 0 and page.height > 0:
        centers_x = np.array([run.x + run.width / 2 for run in runs], dtype=float)
        centers_y = np.array([run.y + run.height / 2 for run in runs], dtype=float)
        vector[5] = float(np.clip(centers_x.mean() / page.width, 0.0, 1.0))
        vector[6] = float(np.clip(centers_y.mean() / page.height, 0.0, 1.0))

    fonts = {run.font_name for run in runs if run.font_name}
    vector[7] = min(1.0, len(fonts) / _MAX_FONTS)

    buckets = length - _FIXED_SLOTS
    if images and buckets > 0:
        weight = 1.0 / len(images)
        for image in images:
            key = image.image_hash or image.image_id or f"{image.width}x{image.height}"
            digest = hashlib.md5(key.encode("utf-8")).digest()
            vector[_FIXED_SLOTS + digest[0] % buckets] += weight

    return tuple(round(float(v), 9) for v in vector)


def _empty_signature(page: PageModel, length: int) -> np.ndarray:
    vector = np.zeros(max(length, _FIXED_SLOTS + 1), dtype=float)
    total = page.width + page.height
    vector[0] = page.width / total if total > 0 else 0.0
    return vector
