from __future__ import annotations

import dataclasses

import pytest

from comparison.models import (
    DIFFERENCE_TYPES,
    BoundingBox,
    FontUsage,
    ImageDifference,
    MetadataDifference,
    PageModel,
    PagePair,
    TextDifference,
    TextRun,
)


def test_page_model_stores_tuples_and_falls_back_to_run_text():
    runs = [TextRun("Hello", 0, 0, 10, 10), TextRun("world", 0, 20, 10, 10)]
    page = PageModel(page_number=1, width=600, height=800, text_runs=runs)

    assert isinstance(page.text_runs, tuple)
    assert page.full_text == "Hello\nworld"

    explicit = PageModel(page_number=1, width=600, height=800, text="Given", text_runs=runs)
    assert explicit.full_text == "Given"


def test_page_model_is_frozen():
    page = PageModel(page_number=1, width=600, height=800)
    with pytest.raises(dataclasses.FrozenInstanceError):
        page.width = 10  # type: ignore[misc]


def test_unavailable_placeholder_and_bounds():
    page = PageModel.unavailable(3, 600, 800, reason="corrupt stream")
    assert page.content_unavailable is True
    assert page.unavailable_reason == "corrupt stream"
    assert page.full_text == ""
    assert page.bounds == BoundingBox(0.0, 0.0, 600.0, 800.0)


def test_font_usage_lookup():
    page = PageModel(
        page_number=1, width=600, height=800,
        fonts=[FontUsage("Arial-BoldMT", family="Arial", embedded=True)],
    )
    assert page.font_usage("Arial-BoldMT").family == "Arial"
    assert page.font_usage("Missing") is None
    assert page.font_usage(None) is None


def test_bounding_box_union():
    a = BoundingBox(10, 10, 20, 20)
    b = BoundingBox(25, 5, 10, 10)
    u = a.union(b)
    assert (u.x, u.y, u.x1, u.y1) == (10, 5, 35, 30)
    assert a.to_dict() == {"x": 10, "y": 10, "width": 20, "height": 20}


def test_page_pair_status():
    assert PagePair(1, 2).status == "matched"
    assert PagePair(None, 2).status == "added"
    assert PagePair(1, None).status == "deleted"
    assert PagePair(None, 2).is_added and not PagePair(None, 2).is_matched


def test_difference_kind_tags_are_closed_and_fixed():
    assert set(DIFFERENCE_TYPES) == {"text", "image", "font", "style", "metadata"}
    for kind, cls in DIFFERENCE_TYPES.items():
        assert cls(change_type="modified").kind == kind

    text = TextDifference(change_type="added", compare_page=2)
    assert text.kind == "text"
    assert text.id == "" and text.severity is None
    assert ImageDifference(change_type="deleted").kind == "image"
    assert MetadataDifference(change_type="added", key="Title").bbox is None
