"""Line-level text comparison for a matched page pair."""
from __future__ import annotations

import difflib
from typing import List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from comparison.models import BoundingBox, PageModel, TextDifference
from config.comparison_config import ComparisonConfig
from utils.coordinates import union_boxes
from utils.logging import logger
from utils.text_normalization import normalize_text, split_lines

Line = Tuple[int, int, str]  # (line number, start offset, stripped text)

_OPCODE_CHANGE = {
    "replace": "modified",
    "delete": "deleted",
    "insert": "added",
}


def diff_text(
    base_page: PageModel,
    compare_page: PageModel,
    config: Optional[ComparisonConfig] = None,
) -> List[TextDifference]:
    """
    Compare the text of two aligned pages line by line.

    Lines are normalized (case, Unicode, whitespace) before an LCS-style
    diff (difflib.SequenceMatcher). Each non-equal run of lines becomes one
    TextDifference carrying the original line text, its line and character
    range, and the unchanged line immediately before and after as context.

    Args:
        base_page: Page from the base document
        compare_page: Aligned page from the compare document
        config: Unused; accepted so all differs share one signature

    Returns:
        TextDifferences in reading order; equal lines produce nothing
    """
    lines_a = split_lines(base_page.full_text)
    lines_b = split_lines(compare_page.full_text)
    norm_a = [normalize_text(text) for _, _, text in lines_a]
    norm_b = [normalize_text(text) for _, _, text in lines_b]
    total_a = sum(len(text) for text in norm_a)
    total_b = sum(len(text) for text in norm_b)

    matcher = difflib.SequenceMatcher(None, norm_a, norm_b, autojunk=False)
    diffs: List[TextDifference] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        change_type = _OPCODE_CHANGE[tag]
        chunk_a = lines_a[i1:i2]
        chunk_b = lines_b[j1:j2]

        # Positions refer to the compare page only for pure insertions.
        if change_type == "added":
            anchor, lines, lo, hi, page = chunk_b, lines_b, j1, j2, compare_page
        else:
            anchor, lines, lo, hi, page = chunk_a, lines_a, i1, i2, base_page

        changed_a = sum(len(text) for text in norm_a[i1:i2])
        changed_b = sum(len(text) for text in norm_b[j1:j2])
        ratio = max(
            changed_a / total_a if total_a else 0.0,
            changed_b / total_b if total_b else 0.0,
        )

        similarity = None
        if change_type == "modified":
            similarity = fuzz.ratio(" ".join(norm_a[i1:i2]), " ".join(norm_b[j1:j2])) / 100.0

        diffs.append(TextDifference(
            change_type=change_type,
            base_page=base_page.page_number,
            compare_page=compare_page.page_number,
            bbox=_chunk_box(page, lines, lo, hi),
            base_text=_join(chunk_a),
            compare_text=_join(chunk_b),
            start_line=anchor[0][0],
            end_line=anchor[-1][0],
            start_index=anchor[0][1],
            end_index=anchor[-1][1] + len(anchor[-1][2]),
            context_before=lines[lo - 1][2] if lo > 0 else None,
            context_after=lines[hi][2] if hi < len(lines) else None,
            changed_ratio=round(ratio, 6),
            similarity=similarity,
        ))

    logger.debug(
        "Text diff page %d vs %d: %d differences",
        base_page.page_number, compare_page.page_number, len(diffs),
    )
    return diffs


def _join(chunk: Sequence[Line]) -> Optional[str]:
    if not chunk:
        return None
    return "\n".join(text for _, _, text in chunk)


def _chunk_box(page: PageModel, lines: Sequence[Line], lo: int, hi: int) -> Optional[BoundingBox]:
    """
    Union of the runs that make up lines[lo:hi].

    Runs spelling a whole changed line win. When the page text was extracted
    at a finer grain than lines, runs that are fragments of a changed line are
    used instead, except fragments that also occur in an unchanged line.
    """
    changed = {normalize_text(text) for _, _, text in lines[lo:hi]}
    unchanged = [normalize_text(text) for _, _, text in lines[:lo] + lines[hi:]]
    runs = [(normalize_text(run.text), run) for run in page.text_runs]

    boxes = [BoundingBox.from_element(run) for text, run in runs if text in changed]
    if not boxes:
        boxes = [
            BoundingBox.from_element(run)
            for text, run in runs
            if text
            and any(text in line for line in changed)
            and not any(text in line for line in unchanged)
        ]
    return union_boxes(boxes)
