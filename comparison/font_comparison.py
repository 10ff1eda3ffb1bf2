"""Font difference detection between matched text runs."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from comparison.models import BoundingBox, FontDifference, PageModel, TextRun
from comparison.run_matching import match_runs
from config.comparison_config import ComparisonConfig
from utils.logging import logger
from utils.style_normalization import font_style_label, normalize_font_name


def diff_fonts(
    base_page: PageModel,
    compare_page: PageModel,
    config: Optional[ComparisonConfig] = None,
) -> List[FontDifference]:
    """
    Compare fonts of runs that hold the same text at the same position.

    Runs whose font changed in the same way are collapsed into one
    FontDifference; ``occurrences`` counts them and the bbox covers them all.

    Args:
        base_page: Page from the base document
        compare_page: Aligned page from the compare document
        config: Supplies font_size_tolerance and run_position_tolerance

    Returns:
        FontDifferences in order of first occurrence on the base page
    """
    config = config or ComparisonConfig()
    pairs = match_runs(base_page.text_runs, compare_page.text_runs, config.run_position_tolerance)

    grouped: Dict[tuple, FontDifference] = {}
    for run_a, run_b in pairs:
        diff = _compare_run_fonts(base_page, compare_page, run_a, run_b, config.font_size_tolerance)
        if diff is None:
            continue
        key = _change_key(diff)
        existing = grouped.get(key)
        if existing is None:
            grouped[key] = diff
            continue
        grouped[key] = _merge(existing, diff)

    diffs = list(grouped.values())
    if diffs:
        logger.debug("Font diff page %d vs %d: %d differences",
                     base_page.page_number, compare_page.page_number, len(diffs))
    return diffs


def _compare_run_fonts(
    base_page: PageModel,
    compare_page: PageModel,
    run_a: TextRun,
    run_b: TextRun,
    size_tolerance: float,
) -> Optional[FontDifference]:
    usage_a = base_page.font_usage(run_a.font_name)
    usage_b = compare_page.font_usage(run_b.font_name)

    family_a = (usage_a.family if usage_a and usage_a.family else None) or normalize_font_name(run_a.font_name)
    family_b = (usage_b.family if usage_b and usage_b.family else None) or normalize_font_name(run_b.font_name)
    style_a = font_style_label(run_a.bold, run_a.italic)
    style_b = font_style_label(run_b.bold, run_b.italic)

    name_changed = (run_a.font_name or "") != (run_b.font_name or "")
    family_changed = family_a.lower() != family_b.lower()
    style_changed = style_a != style_b
    size_changed = (
        run_a.font_size is not None
        and run_b.font_size is not None
        and abs(run_a.font_size - run_b.font_size) > size_tolerance
    )

    # Encoding and embedding are only compared when both pages report them.
    encoding_a = usage_a.encoding if usage_a else None
    encoding_b = usage_b.encoding if usage_b else None
    encoding_changed = encoding_a is not None and encoding_b is not None and encoding_a != encoding_b
    embedded_a = usage_a.embedded if usage_a else None
    embedded_b = usage_b.embedded if usage_b else None
    embedding_changed = embedded_a is not None and embedded_b is not None and embedded_a != embedded_b

    if not (name_changed or family_changed or style_changed or size_changed
            or encoding_changed or embedding_changed):
        return None

    return FontDifference(
        change_type="modified",
        base_page=base_page.page_number,
        compare_page=compare_page.page_number,
        bbox=BoundingBox.from_element(run_a),
        base_font=run_a.font_name,
        compare_font=run_b.font_name,
        base_family=family_a or None,
        compare_family=family_b or None,
        base_style=style_a,
        compare_style=style_b,
        base_size=run_a.font_size,
        compare_size=run_b.font_size,
        base_encoding=encoding_a,
        compare_encoding=encoding_b,
        base_embedded=embedded_a,
        compare_embedded=embedded_b,
        has_name_changed=name_changed,
        has_family_changed=family_changed,
        has_style_changed=style_changed,
        has_size_changed=size_changed,
        has_encoding_changed=encoding_changed,
        has_embedding_changed=embedding_changed,
        sample_text=run_a.text,
    )


def _change_key(diff: FontDifference) -> Tuple:
    return (
        diff.base_font, diff.compare_font,
        diff.base_style, diff.compare_style,
        diff.base_size if diff.has_size_changed else None,
        diff.compare_size if diff.has_size_changed else None,
        diff.base_encoding, diff.compare_encoding,
        diff.base_embedded, diff.compare_embedded,
        diff.has_name_changed, diff.has_family_changed, diff.has_style_changed,
        diff.has_size_changed, diff.has_encoding_changed, diff.has_embedding_changed,
    )


def _merge(existing: FontDifference, other: FontDifference) -> FontDifference:
    bbox = existing.bbox.union(other.bbox) if existing.bbox and other.bbox else existing.bbox or other.bbox
    return replace(existing, bbox=bbox, occurrences=existing.occurrences + 1)
