from __future__ import annotations

import pytest

from comparison.errors import ExtractionError
from comparison.models import PageModel


class _PagedExtractor:
    def __init__(self, count: int, broken=()):
        self.count = count
        self.broken = set(broken)

    def page_count(self, document):
        return self.count

    def extract_page(self, document, page_number):
        if page_number in self.broken:
            raise ExtractionError("corrupt content stream", page_number=page_number)
        return PageModel(page_number=page_number, width=600, height=800, text=f"page {page_number}")


class _WholeExtractor:
    def extract(self, document):
        return [PageModel(page_number=1, width=600, height=800, text=document)]


def test_page_failure_becomes_unavailable_placeholder():
    from extraction import extract_document

    pages = extract_document(_PagedExtractor(3, broken={2}), "doc.pdf")

    assert [p.page_number for p in pages] == [1, 2, 3]
    assert pages[1].content_unavailable
    assert "corrupt content stream" in pages[1].unavailable_reason
    assert not pages[0].content_unavailable


def test_document_failure_propagates():
    from extraction import extract_document

    class _Unopenable(_PagedExtractor):
        def page_count(self, document):
            raise ExtractionError("not a PDF")

    with pytest.raises(ExtractionError):
        extract_document(_Unopenable(1), "doc.pdf")


def test_whole_document_extractor():
    from extraction import Extractor, extract_document

    assert isinstance(_WholeExtractor(), Extractor)
    pages = extract_document(_WholeExtractor(), "hello")
    assert pages[0].text == "hello"


def test_unknown_extractor_is_rejected():
    from extraction import extract_document

    with pytest.raises(TypeError):
        extract_document(object(), "doc.pdf")


def test_extracted_pages_feed_comparison():
    from extraction import extract_document
    from pipeline import compare

    base = extract_document(_PagedExtractor(2, broken={2}), "a.pdf")
    compare_doc = extract_document(_PagedExtractor(2, broken={2}), "b.pdf")
    result = compare(base, compare_doc)

    assert [p.status for p in result.pages] == ["compared", "unavailable"]
