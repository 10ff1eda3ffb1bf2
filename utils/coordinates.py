"""Coordinate helpers for display bounding boxes."""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from comparison.models import BoundingBox


def normalize_bbox(
    bbox: BoundingBox,
    page_width: float,
    page_height: float,
) -> Dict[str, float]:
    """
    Convert an absolute box to normalized (0-1) {x, y, width, height}.

    Args:
        bbox: Box in absolute page points
        page_width: Width of the page in absolute units
        page_height: Height of the page in absolute units

    Returns:
        Normalized bounding box with values clamped to [0.0, 1.0]
    """
    if page_width <= 0 or page_height <= 0:
        raise ValueError("Page dimensions must be positive")

    x = max(0.0, min(1.0, bbox.x / page_width))
    y = max(0.0, min(1.0, bbox.y / page_height))
    width = max(0.0, min(1.0, bbox.width / page_width))
    height = max(0.0, min(1.0, bbox.height / page_height))

    # Keep the box inside the page
    if x + width > 1.0:
        width = 1.0 - x
    if y + height > 1.0:
        height = 1.0 - y

    return {"x": x, "y": y, "width": width, "height": height}


def union_boxes(boxes: Iterable[BoundingBox]) -> Optional[BoundingBox]:
    """Smallest box covering every box in ``boxes``; None when empty."""
    result: Optional[BoundingBox] = None
    for box in boxes:
        result = box if result is None else result.union(box)
    return result


def box_offset(a, b) -> float:
    """Largest position or size offset between two elements carrying x/y/width/height."""
    return max(
        abs(a.x - b.x),
        abs(a.y - b.y),
        abs(a.width - b.width),
        abs(a.height - b.height),
    )
