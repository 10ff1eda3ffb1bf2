from __future__ import annotations

import re

import pytest

from comparison.models import (
    BoundingBox,
    FontDifference,
    ImageDifference,
    MetadataDifference,
    PageComparison,
    PageModel,
    PagePair,
    StyleDifference,
    TextDifference,
)


def _page(page_number: int, text: str = "", *, width: float = 600.0, height: float = 800.0) -> PageModel:
    return PageModel(page_number=page_number, width=width, height=height, text=text)


def test_severity_policy():
    from comparison.aggregator import assign_severity

    assert assign_severity(TextDifference(change_type="added", page_level=True)) == "critical"
    assert assign_severity(TextDifference(change_type="modified", changed_ratio=0.6)) == "critical"
    assert assign_severity(TextDifference(change_type="modified", changed_ratio=0.5)) == "major"
    assert assign_severity(ImageDifference(change_type="deleted")) == "major"
    assert assign_severity(FontDifference(change_type="modified")) == "minor"
    assert assign_severity(StyleDifference(change_type="modified")) == "minor"
    assert assign_severity(MetadataDifference(change_type="added", key="Title")) == "minor"


def test_display_box_falls_back_to_page_bounds():
    from comparison.aggregator import display_box

    base = _page(1, width=600, height=800)
    compare = _page(1, width=612, height=792)

    added = TextDifference(change_type="added", base_page=1, compare_page=1)
    deleted = TextDifference(change_type="deleted", base_page=1, compare_page=1)
    located = TextDifference(change_type="added", bbox=BoundingBox(1, 2, 3, 4))

    assert display_box(added, base, compare) == BoundingBox(0, 0, 612, 792)
    assert display_box(deleted, base, compare) == BoundingBox(0, 0, 600, 800)
    assert display_box(located, base, compare) == BoundingBox(1, 2, 3, 4)
    assert display_box(MetadataDifference(change_type="added", key="k"), base, compare) is None


def test_page_existence_difference():
    from comparison.aggregator import page_existence_difference

    page = _page(4, "Appendix\nTable A")
    diff = page_existence_difference(PagePair(None, 4), page)

    assert diff.change_type == "added" and diff.page_level
    assert diff.compare_text == "Appendix\nTable A" and diff.base_text is None
    assert diff.bbox == page.bounds
    assert (diff.start_line, diff.end_line) == (1, 2)

    with pytest.raises(ValueError):
        page_existence_difference(PagePair(1, 1), page)


def test_difference_id_is_stable_and_prefixed():
    from comparison.aggregator import difference_id

    diff = ImageDifference(change_type="deleted", base_page=1, compare_page=1, base_hash="ff")
    same = ImageDifference(change_type="deleted", base_page=1, compare_page=1, base_hash="ff",
                           description="ignored", severity="major")
    other = ImageDifference(change_type="deleted", base_page=2, compare_page=2, base_hash="ff")

    assert re.fullmatch(r"image-[0-9a-f]{16}", difference_id(diff))
    assert difference_id(diff) == difference_id(same)
    assert difference_id(diff) != difference_id(other)


def test_aggregate_fills_fields_and_suffixes_colliding_ids():
    from comparison.aggregator import aggregate

    base = [_page(1, "a"), _page(2, "b")]
    compare = [_page(1, "a")]
    twin = FontDifference(change_type="modified", base_page=1, compare_page=1,
                          base_font="Arial", compare_font="Times", has_name_changed=True)
    comparisons = [
        PageComparison(0, PagePair(1, 1), differences=(twin, twin)),
        PageComparison(1, PagePair(2, None), differences=(TextDifference(
            change_type="deleted", base_page=2, page_level=True, changed_ratio=1.0),)),
    ]
    metadata = {"Title": MetadataDifference(change_type="modified", key="Title",
                                            base_value="A", compare_value="B", value_different=True)}

    result = aggregate(comparisons, metadata, base, compare)

    first, second = result.pages[0].differences
    assert second.id == f"{first.id}-1"
    assert first.severity == "minor"
    assert first.description == "Font changed from 'Arial' to 'Times'"
    assert first.bbox == BoundingBox(0, 0, 600, 800)

    removed = result.pages[1].differences[0]
    assert removed.severity == "critical"
    assert removed.description == "Page 2 removed"
    assert result.pages[1].base_size == (600.0, 800.0)
    assert result.pages[1].compare_size is None

    title = result.metadata_differences["Title"]
    assert title.bbox is None
    assert title.description == "Metadata 'Title' changed from 'A' to 'B'"

    summary = result.summary
    assert summary.total == 4
    assert summary.by_type == {"font": 2, "metadata": 1, "text": 1}
    assert summary.by_severity == {"critical": 1, "minor": 3}
    assert summary.by_change_type == {"deleted": 1, "modified": 3}
    assert (summary.matched_pairs, summary.added_pages, summary.deleted_pages) == (1, 0, 1)
    assert [d.kind for d in result.differences()] == ["font", "font", "text", "metadata"]

    ids = [d.id for d in result.differences()]
    assert len(ids) == len(set(ids))


def test_aggregated_result_mappings_are_read_only():
    from comparison.aggregator import aggregate

    page = PageModel(page_number=1, width=600, height=800)
    metadata = {"Author": MetadataDifference(change_type="added", key="Author",
                                             compare_value="Ann", only_in_compare=True)}
    result = aggregate([PageComparison(0, PagePair(1, 1))], metadata, [page], [page])

    with pytest.raises(TypeError):
        result.metadata_differences["Title"] = metadata["Author"]  # type: ignore[index]
    with pytest.raises(TypeError):
        result.summary.by_type["text"] = 1  # type: ignore[index]

    # The result does not share state with the caller's mapping.
    metadata.clear()
    assert list(result.metadata_differences) == ["Author"]
    assert result.summary.by_change_type == {"added": 1}
