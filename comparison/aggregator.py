"""Central severity, description, id and display-bbox assignment for differences."""
from __future__ import annotations

import dataclasses
import hashlib
import json
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence

from comparison.models import (
    BoundingBox,
    ComparisonResult,
    ComparisonSummary,
    Difference,
    FontDifference,
    ImageDifference,
    MetadataDifference,
    PageComparison,
    PageModel,
    PagePair,
    Severity,
    StyleDifference,
    TextDifference,
)
from utils.logging import logger

# Differences covering more than this share of a page's text are critical.
CRITICAL_CHANGED_RATIO = 0.5

_EXCLUDED_FROM_ID = ("id", "severity", "description")


def assign_severity(diff: Difference) -> Severity:
    """Single severity policy for every difference kind."""
    if isinstance(diff, TextDifference):
        if diff.page_level or diff.changed_ratio > CRITICAL_CHANGED_RATIO:
            return "critical"
        return "major"
    if isinstance(diff, ImageDifference):
        return "major"
    return "minor"


def page_existence_difference(pair: PagePair, page: PageModel) -> TextDifference:
    """
    Page-level TextDifference for a page present in only one document.

    Args:
        pair: An added or deleted PagePair
        page: The page that exists (compare page when added, base page when deleted)
    """
    if pair.is_matched:
        raise ValueError("page_existence_difference needs an added or deleted pair")
    text = page.full_text or None
    added = pair.is_added
    return TextDifference(
        change_type="added" if added else "deleted",
        base_page=pair.base_page,
        compare_page=pair.compare_page,
        bbox=page.bounds,
        base_text=None if added else text,
        compare_text=text if added else None,
        start_line=1 if text else 0,
        end_line=len(text.splitlines()) if text else 0,
        start_index=0,
        end_index=len(text) if text else 0,
        changed_ratio=1.0,
        page_level=True,
    )


def display_box(
    diff: Difference,
    base_page: Optional[PageModel],
    compare_page: Optional[PageModel],
) -> Optional[BoundingBox]:
    """Element box when known, otherwise the bounds of the page the difference lives on."""
    if diff.bbox is not None:
        return diff.bbox
    if isinstance(diff, MetadataDifference):
        return None
    page = compare_page if diff.change_type == "added" else base_page
    page = page or base_page or compare_page
    return page.bounds if page is not None else None


def describe(diff: Difference) -> str:
    """Generate a human-readable description of the difference."""
    if isinstance(diff, TextDifference):
        return _describe_text(diff)
    if isinstance(diff, ImageDifference):
        if diff.change_type == "added":
            return "Image added"
        if diff.change_type == "deleted":
            return "Image removed"
        if diff.similarity is not None:
            return f"Image changed (similarity {diff.similarity:.2f})"
        return "Image changed"
    if isinstance(diff, FontDifference):
        return _describe_font(diff)
    if isinstance(diff, StyleDifference):
        changes = [
            f"{name.replace('_', ' ')} {getattr(diff, 'base_' + name)} → {getattr(diff, 'compare_' + name)}"
            for name in diff.changed_attributes
        ]
        return "Style changed: " + ", ".join(changes) if changes else "Style changed"
    if isinstance(diff, MetadataDifference):
        if diff.only_in_compare:
            return f"Metadata '{diff.key}' added: '{diff.compare_value}'"
        if diff.only_in_base:
            return f"Metadata '{diff.key}' removed"
        return f"Metadata '{diff.key}' changed from '{diff.base_value}' to '{diff.compare_value}'"
    return "Content changed"


def _preview(text: Optional[str], limit: int) -> str:
    text = text or ""
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


def _describe_text(diff: TextDifference) -> str:
    if diff.page_level:
        if diff.change_type == "added":
            return f"Page {diff.compare_page} added"
        return f"Page {diff.base_page} removed"
    if diff.change_type == "added":
        return f"Text added: '{_preview(diff.compare_text, 50)}'" if diff.compare_text else "Content added"
    if diff.change_type == "deleted":
        return f"Text removed: '{_preview(diff.base_text, 50)}'" if diff.base_text else "Content removed"
    if diff.base_text and diff.compare_text:
        return f"Text changed: '{_preview(diff.base_text, 30)}' → '{_preview(diff.compare_text, 30)}'"
    return "Text modified"


def _describe_font(diff: FontDifference) -> str:
    parts: List[str] = []
    if diff.has_name_changed or diff.has_family_changed:
        parts.append(f"Font changed from '{diff.base_font or 'unknown'}' to '{diff.compare_font or 'unknown'}'")
    if diff.has_size_changed and diff.base_size is not None and diff.compare_size is not None:
        parts.append(f"Font size changed from {diff.base_size:.1f}pt to {diff.compare_size:.1f}pt")
    if diff.has_style_changed:
        parts.append(f"Text style changed from {diff.base_style} to {diff.compare_style}")
    if diff.has_encoding_changed:
        parts.append(f"Font encoding changed from {diff.base_encoding} to {diff.compare_encoding}")
    if diff.has_embedding_changed:
        parts.append("Font embedded" if diff.compare_embedded else "Font no longer embedded")
    description = "; ".join(parts) or "Font changed"
    if diff.occurrences > 1:
        description += f" ({diff.occurrences} occurrences)"
    return description


def difference_id(diff: Difference) -> str:
    """Kind-prefixed sha1 of the canonical JSON of the fields that define a difference."""
    payload = dataclasses.asdict(diff)
    for name in _EXCLUDED_FROM_ID:
        payload.pop(name, None)
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return f"{diff.kind}-{hashlib.sha1(canonical.encode('utf-8')).hexdigest()[:16]}"


def _unique(identifier: str, seen: Counter) -> str:
    seen[identifier] += 1
    if seen[identifier] == 1:
        return identifier
    return f"{identifier}-{seen[identifier] - 1}"


def finalize_difference(
    diff: Difference,
    base_page: Optional[PageModel],
    compare_page: Optional[PageModel],
    seen: Counter,
) -> Difference:
    """Fill bbox, severity, description and a result-unique id."""
    completed = dataclasses.replace(diff, bbox=display_box(diff, base_page, compare_page))
    return dataclasses.replace(
        completed,
        id=_unique(difference_id(completed), seen),
        severity=completed.severity or assign_severity(completed),
        description=completed.description or describe(completed),
    )


def aggregate(
    comparisons: Sequence[PageComparison],
    metadata_differences: Mapping[str, MetadataDifference],
    base_pages: Sequence[PageModel],
    compare_pages: Sequence[PageModel],
) -> ComparisonResult:
    """
    Assemble the immutable ComparisonResult.

    Args:
        comparisons: One PageComparison per page pair, in pair order, holding
            the raw differences produced by the differs
        metadata_differences: Output of ``diff_metadata``
        base_pages: Base document pages (for display boxes)
        compare_pages: Compare document pages (for display boxes)

    Returns:
        ComparisonResult with every difference finalized and summary counts
    """
    base_lookup = {page.page_number: page for page in base_pages}
    compare_lookup = {page.page_number: page for page in compare_pages}
    seen: Counter = Counter()

    pages: List[PageComparison] = []
    for comparison in comparisons:
        pair = comparison.pair
        base_page = base_lookup.get(pair.base_page) if pair.base_page is not None else None
        compare_page = compare_lookup.get(pair.compare_page) if pair.compare_page is not None else None
        finalized = tuple(
            finalize_difference(diff, base_page, compare_page, seen)
            for diff in comparison.differences
        )
        pages.append(dataclasses.replace(
            comparison,
            differences=finalized,
            base_size=_size(base_page),
            compare_size=_size(compare_page),
        ))

    metadata: Dict[str, MetadataDifference] = {
        key: finalize_difference(metadata_differences[key], None, None, seen)
        for key in sorted(metadata_differences)
    }

    result = ComparisonResult(
        base_page_count=len(base_pages),
        compare_page_count=len(compare_pages),
        metadata_differences=metadata,
        pages=tuple(pages),
        summary=summarize(pages, metadata.values()),
    )
    logger.info(
        "Aggregated %d differences across %d page pairs",
        result.summary.total, len(pages),
    )
    return result


def summarize(pages: Sequence[PageComparison], metadata) -> ComparisonSummary:
    """Count differences by kind, severity and change type, and pairs by status."""
    by_type: Counter = Counter()
    by_severity: Counter = Counter()
    by_change_type: Counter = Counter()

    all_diffs: List[Difference] = [diff for page in pages for diff in page.differences]
    all_diffs.extend(metadata)
    for diff in all_diffs:
        by_type[diff.kind] += 1
        by_severity[diff.severity] += 1
        by_change_type[diff.change_type] += 1

    return ComparisonSummary(
        total=len(all_diffs),
        by_type=dict(sorted(by_type.items())),
        by_severity=dict(sorted(by_severity.items())),
        by_change_type=dict(sorted(by_change_type.items())),
        matched_pairs=sum(1 for page in pages if page.pair.is_matched),
        added_pages=sum(1 for page in pages if page.pair.is_added),
        deleted_pages=sum(1 for page in pages if page.pair.is_deleted),
        unavailable_pairs=sum(1 for page in pages if page.status == "unavailable"),
    )


def _size(page: Optional[PageModel]) -> Optional[tuple]:
    return (float(page.width), float(page.height)) if page is not None else None
