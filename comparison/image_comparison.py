"""Embedded image comparison for a matched page pair."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import imagehash

from comparison.models import BoundingBox, ImageDifference, ImageInfo, PageModel
from config.comparison_config import ComparisonConfig
from utils.coordinates import box_offset
from utils.logging import logger


def hash_distance(hash_a: Optional[str], hash_b: Optional[str]) -> float:
    """
    Normalized Hamming distance (0.0-1.0) between two hex perceptual hashes.

    Hashes that imagehash cannot parse, or that differ in length, fall back
    to exact comparison (0.0 when equal, 1.0 otherwise).
    """
    if hash_a == hash_b:
        return 0.0
    if not hash_a or not hash_b:
        return 1.0
    try:
        parsed_a = imagehash.hex_to_hash(hash_a)
        parsed_b = imagehash.hex_to_hash(hash_b)
        bits = parsed_a.hash.size
        return float(parsed_a - parsed_b) / bits if bits else 1.0
    except (ValueError, TypeError):
        return 0.0 if hash_a.lower() == hash_b.lower() else 1.0


def match_images(
    images_a: Tuple[ImageInfo, ...],
    images_b: Tuple[ImageInfo, ...],
    position_tolerance: float,
) -> Tuple[List[Tuple[ImageInfo, ImageInfo]], List[ImageInfo], List[ImageInfo]]:
    """
    Pair images by stable id, then by nearest (position, size).

    Returns:
        (matched pairs, unmatched base images, unmatched compare images)
    """
    matched: Dict[int, int] = {}
    used_b: set = set()

    ids_b = {img.image_id: idx for idx, img in enumerate(images_b) if img.image_id}
    for idx_a, img in enumerate(images_a):
        if img.image_id and img.image_id in ids_b:
            idx_b = ids_b[img.image_id]
            if idx_b not in used_b:
                matched[idx_a] = idx_b
                used_b.add(idx_b)

    for idx_a, img in enumerate(images_a):
        if idx_a in matched:
            continue
        nearby = [
            (box_offset(img, other), idx_b)
            for idx_b, other in enumerate(images_b)
            if idx_b not in used_b and box_offset(img, other) <= position_tolerance
        ]
        if nearby:
            _, idx_b = min(nearby)
            matched[idx_a] = idx_b
            used_b.add(idx_b)

    pairs = [(images_a[a], images_b[b]) for a, b in sorted(matched.items())]
    unmatched_a = [img for idx, img in enumerate(images_a) if idx not in matched]
    unmatched_b = [img for idx, img in enumerate(images_b) if idx not in used_b]
    return pairs, unmatched_a, unmatched_b


def diff_images(
    base_page: PageModel,
    compare_page: PageModel,
    config: Optional[ComparisonConfig] = None,
) -> List[ImageDifference]:
    """
    Compare the embedded images of two aligned pages.

    Args:
        base_page: Page from the base document
        compare_page: Aligned page from the compare document
        config: Supplies image_similarity_threshold and image_position_tolerance

    Returns:
        ImageDifferences: deleted, added, or modified (hash distance above threshold)
    """
    config = config or ComparisonConfig()
    pairs, only_base, only_compare = match_images(
        base_page.images, compare_page.images, config.image_position_tolerance
    )
    diffs: List[ImageDifference] = []

    for img_a, img_b in pairs:
        distance = hash_distance(img_a.image_hash, img_b.image_hash)
        if distance <= config.image_similarity_threshold:
            continue
        diffs.append(_image_diff("modified", base_page, compare_page, img_a, img_b, 1.0 - distance))

    for img in only_base:
        diffs.append(_image_diff("deleted", base_page, compare_page, img, None, None))
    for img in only_compare:
        diffs.append(_image_diff("added", base_page, compare_page, None, img, None))

    if diffs:
        logger.debug("Image diff page %d vs %d: %d differences",
                     base_page.page_number, compare_page.page_number, len(diffs))
    return diffs


def _image_diff(
    change_type: str,
    base_page: PageModel,
    compare_page: PageModel,
    img_a: Optional[ImageInfo],
    img_b: Optional[ImageInfo],
    similarity: Optional[float],
) -> ImageDifference:
    located = img_a if img_a is not None else img_b
    return ImageDifference(
        change_type=change_type,
        base_page=base_page.page_number,
        compare_page=compare_page.page_number,
        bbox=BoundingBox.from_element(located),
        base_hash=img_a.image_hash if img_a else None,
        compare_hash=img_b.image_hash if img_b else None,
        base_image_id=img_a.image_id if img_a else None,
        compare_image_id=img_b.image_id if img_b else None,
        base_format=img_a.format if img_a else None,
        compare_format=img_b.format if img_b else None,
        base_width=img_a.width if img_a else None,
        base_height=img_a.height if img_a else None,
        compare_width=img_b.width if img_b else None,
        compare_height=img_b.height if img_b else None,
        similarity=round(similarity, 6) if similarity is not None else None,
    )
