"""Export comparison results as JSON."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from comparison.models import BoundingBox, ComparisonResult, Difference, PageComparison
from utils.coordinates import normalize_bbox
from utils.logging import logger


def export_json(result: ComparisonResult, output_path: str | Path) -> Path:
    """
    Export a comparison result as JSON.

    Bounding boxes are written in absolute page points, each with a normalized
    (0-1) copy for viewers that overlay on scaled renders.
    """
    output = Path(output_path)
    logger.info("Writing JSON diff to %s", output)
    payload = result_to_dict(result)
    output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return output


def result_to_dict(result: ComparisonResult) -> Dict[str, Any]:
    summary = result.summary
    return {
        "base_page_count": result.base_page_count,
        "compare_page_count": result.compare_page_count,
        "summary": {
            "total": summary.total,
            "by_type": dict(summary.by_type),
            "by_severity": dict(summary.by_severity),
            "by_change_type": dict(summary.by_change_type),
            "matched_pairs": summary.matched_pairs,
            "added_pages": summary.added_pages,
            "deleted_pages": summary.deleted_pages,
            "unavailable_pairs": summary.unavailable_pairs,
        },
        "pages": [_page_to_dict(page) for page in result.pages],
        "metadata_differences": {
            key: difference_to_dict(diff) for key, diff in result.metadata_differences.items()
        },
    }


def _page_to_dict(page: PageComparison) -> Dict[str, Any]:
    pair = page.pair
    score = pair.score
    entry: Dict[str, Any] = {
        "index": page.index,
        "base_page": pair.base_page,
        "compare_page": pair.compare_page,
        "pair_status": pair.status,
        "status": page.status,
        "score": None if score is None else {
            "value": score.value,
            "content": score.content,
            "visual": score.visual,
        },
        "differences": [],
    }
    if page.unavailable_reason:
        entry["unavailable_reason"] = page.unavailable_reason

    for diff in page.differences:
        if diff.change_type == "added":
            size = page.compare_size
        else:
            size = page.base_size
        entry["differences"].append(difference_to_dict(diff, size))
    return entry


def difference_to_dict(diff: Difference, page_size: Optional[tuple] = None) -> Dict[str, Any]:
    """Serialize one difference; the payload fields depend on ``kind``."""
    data: Dict[str, Any] = {
        "id": diff.id,
        "kind": diff.kind,
        "change_type": diff.change_type,
        "severity": diff.severity,
        "description": diff.description,
        "base_page": diff.base_page,
        "compare_page": diff.compare_page,
        "bbox": _bbox(diff.bbox, page_size),
    }

    if diff.kind == "text":
        data.update({
            "base_text": diff.base_text,
            "compare_text": diff.compare_text,
            "start_line": diff.start_line,
            "end_line": diff.end_line,
            "start_index": diff.start_index,
            "end_index": diff.end_index,
            "context_before": diff.context_before,
            "context_after": diff.context_after,
            "changed_ratio": diff.changed_ratio,
            "similarity": diff.similarity,
            "page_level": diff.page_level,
        })
    elif diff.kind == "image":
        data.update({
            "base_hash": diff.base_hash,
            "compare_hash": diff.compare_hash,
            "base_image_id": diff.base_image_id,
            "compare_image_id": diff.compare_image_id,
            "base_format": diff.base_format,
            "compare_format": diff.compare_format,
            "base_size": _size(diff.base_width, diff.base_height),
            "compare_size": _size(diff.compare_width, diff.compare_height),
            "similarity": diff.similarity,
        })
    elif diff.kind == "font":
        data.update({
            "base_font": diff.base_font,
            "compare_font": diff.compare_font,
            "base_family": diff.base_family,
            "compare_family": diff.compare_family,
            "base_style": diff.base_style,
            "compare_style": diff.compare_style,
            "base_size": diff.base_size,
            "compare_size": diff.compare_size,
            "base_encoding": diff.base_encoding,
            "compare_encoding": diff.compare_encoding,
            "base_embedded": diff.base_embedded,
            "compare_embedded": diff.compare_embedded,
            "changes": {
                "name": diff.has_name_changed,
                "family": diff.has_family_changed,
                "style": diff.has_style_changed,
                "size": diff.has_size_changed,
                "encoding": diff.has_encoding_changed,
                "embedding": diff.has_embedding_changed,
            },
            "sample_text": diff.sample_text,
            "occurrences": diff.occurrences,
        })
    elif diff.kind == "style":
        data["text"] = diff.text
        data["changes"] = {
            name: {"base": getattr(diff, f"base_{name}"), "compare": getattr(diff, f"compare_{name}")}
            for name in diff.changed_attributes
        }
    elif diff.kind == "metadata":
        data.update({
            "key": diff.key,
            "base_value": diff.base_value,
            "compare_value": diff.compare_value,
            "only_in_base": diff.only_in_base,
            "only_in_compare": diff.only_in_compare,
            "value_different": diff.value_different,
        })
    else:
        raise ValueError(f"Unknown difference kind: {diff.kind!r}")
    return data


def _bbox(bbox: Optional[BoundingBox], page_size: Optional[tuple]) -> Optional[Dict[str, Any]]:
    if bbox is None:
        return None
    data: Dict[str, Any] = bbox.to_dict()
    if page_size and page_size[0] > 0 and page_size[1] > 0:
        data["normalized"] = normalize_bbox(bbox, page_size[0], page_size[1])
    return data


def _size(width: Optional[float], height: Optional[float]) -> Optional[Dict[str, float]]:
    if width is None or height is None:
        return None
    return {"width": width, "height": height}
