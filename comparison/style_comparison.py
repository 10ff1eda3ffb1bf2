"""Text style (color, opacity, spacing, alignment) comparison between matched runs."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from comparison.models import STYLE_ATTRIBUTES, BoundingBox, PageModel, StyleDifference, TextRun
from comparison.run_matching import match_runs
from config.comparison_config import ComparisonConfig
from utils.logging import logger
from utils.style_normalization import normalize_color

_COLOR_ATTRIBUTES = ("color", "background_color")
_NUMERIC_ATTRIBUTES = ("opacity", "line_height", "character_spacing")


def diff_styles(
    base_page: PageModel,
    compare_page: PageModel,
    config: Optional[ComparisonConfig] = None,
) -> List[StyleDifference]:
    """
    Compare the style attributes of runs matched by text and position.

    Only attributes reported on both sides are compared. A run pair with at
    least one changed attribute yields one StyleDifference carrying just the
    changed values.
    """
    config = config or ComparisonConfig()
    pairs = match_runs(base_page.text_runs, compare_page.text_runs, config.run_position_tolerance)

    diffs: List[StyleDifference] = []
    for run_a, run_b in pairs:
        changes = _changed_attributes(run_a, run_b, config.style_tolerance)
        if not changes:
            continue
        values: Dict[str, Any] = {}
        for name in changes:
            values[f"base_{name}"] = getattr(run_a, name)
            values[f"compare_{name}"] = getattr(run_b, name)
        diffs.append(StyleDifference(
            change_type="modified",
            base_page=base_page.page_number,
            compare_page=compare_page.page_number,
            bbox=BoundingBox.from_element(run_a),
            text=run_a.text,
            changed_attributes=tuple(changes),
            **values,
        ))

    if diffs:
        logger.debug("Style diff page %d vs %d: %d differences",
                     base_page.page_number, compare_page.page_number, len(diffs))
    return diffs


def _changed_attributes(run_a: TextRun, run_b: TextRun, tolerance: float) -> List[str]:
    changed = []
    for name in STYLE_ATTRIBUTES:
        value_a = getattr(run_a, name)
        value_b = getattr(run_b, name)
        if value_a is None or value_b is None:
            continue
        if name in _COLOR_ATTRIBUTES:
            differs = normalize_color(value_a) != normalize_color(value_b)
        elif name in _NUMERIC_ATTRIBUTES:
            differs = abs(float(value_a) - float(value_b)) > tolerance
        else:
            differs = str(value_a).strip().lower() != str(value_b).strip().lower()
        if differs:
            changed.append(name)
    return changed
