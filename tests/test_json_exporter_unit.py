from __future__ import annotations

import json

from comparison.models import PageModel, TextRun


def _page(page_number: int, text: str, *, runs=(), metadata=None) -> PageModel:
    return PageModel(page_number=page_number, width=600.0, height=800.0, text=text,
                     text_runs=runs, metadata=metadata or {})


def _result():
    from pipeline import compare

    body = "\n".join(" ".join(f"w{line}_{k}" for k in range(8)) for line in range(3))
    base = [
        _page(1, body, runs=[TextRun("w0_0", 60, 80, 30, 10, color="#000000")], metadata={"Title": "A"}),
    ]
    compare_doc = [
        _page(1, body, runs=[TextRun("w0_0", 60, 80, 30, 10, color="#ff0000")], metadata={"Title": "B"}),
        _page(2, "Brand new appendix page"),
    ]
    return compare(base, compare_doc)


def test_result_to_dict_switches_on_kind():
    from export import result_to_dict

    data = result_to_dict(_result())

    assert data["base_page_count"] == 1
    assert data["compare_page_count"] == 2
    assert data["summary"]["added_pages"] == 1

    matched, added = data["pages"]
    assert matched["pair_status"] == "matched"
    assert matched["score"]["value"] > 0.5

    style = matched["differences"][0]
    assert style["kind"] == "style"
    assert style["changes"] == {"color": {"base": "#000000", "compare": "#ff0000"}}
    assert style["bbox"]["x"] == 60
    assert style["bbox"]["normalized"]["x"] == 0.1

    page_diff = added["differences"][0]
    assert page_diff["kind"] == "text"
    assert page_diff["page_level"] is True
    assert page_diff["bbox"]["normalized"] == {"x": 0.0, "y": 0.0, "width": 1.0, "height": 1.0}

    title = data["metadata_differences"]["Title"]
    assert title["kind"] == "metadata"
    assert title["bbox"] is None
    assert title["value_different"] is True


def test_export_json_writes_file(tmp_path):
    from export import export_json, result_to_dict

    result = _result()
    path = export_json(result, tmp_path / "diff.json")

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == result_to_dict(result)
