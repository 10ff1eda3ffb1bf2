"""Extraction contract: how documents become ordered PageModel lists."""
from __future__ import annotations

from typing import Any, List, Protocol, runtime_checkable

from comparison.errors import ExtractionError
from comparison.models import PageModel
from utils.logging import logger


@runtime_checkable
class Extractor(Protocol):
    """Reads a whole document. A document-level failure raises ExtractionError."""

    def extract(self, document: Any) -> List[PageModel]: ...


@runtime_checkable
class PageExtractor(Protocol):
    """Reads a document page by page so one bad page does not lose the others."""

    def page_count(self, document: Any) -> int: ...

    def extract_page(self, document: Any, page_number: int) -> PageModel: ...


def extract_document(extractor: Any, document: Any) -> List[PageModel]:
    """
    Extract all pages of a document.

    With a PageExtractor, a page that raises ExtractionError becomes a
    ``PageModel.unavailable`` placeholder and extraction continues; the
    comparison then reports that page's pair as unavailable. Failures that
    concern the whole document (opening it, counting pages) propagate.

    Args:
        extractor: An Extractor or a PageExtractor
        document: Whatever the extractor accepts (path, bytes, handle)

    Returns:
        Pages in document order
    """
    if isinstance(extractor, PageExtractor):
        count = extractor.page_count(document)
        logger.info("Extracting %d pages page by page", count)
        pages: List[PageModel] = []
        for page_number in range(1, count + 1):
            try:
                pages.append(extractor.extract_page(document, page_number))
            except ExtractionError as exc:
                logger.warning("Page %d could not be extracted: %s", page_number, exc)
                pages.append(PageModel.unavailable(page_number, reason=str(exc)))
        return pages

    if isinstance(extractor, Extractor):
        pages = list(extractor.extract(document))
        logger.info("Extracted %d pages", len(pages))
        return pages

    raise TypeError(f"{type(extractor).__name__} implements neither Extractor nor PageExtractor")


__all__ = ["Extractor", "PageExtractor", "extract_document"]
