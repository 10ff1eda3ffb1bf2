"""Input validation helpers."""
from __future__ import annotations

from typing import List, Optional, Sequence

from comparison.errors import ComparisonError
from comparison.models import PageModel
from utils.logging import logger


def validate_pages(pages: Optional[Sequence[PageModel]], label: str) -> List[PageModel]:
    """
    Check a document's page list before any comparison work starts.

    Args:
        pages: Ordered pages from the extractor
        label: "base" or "compare", used in messages

    Returns:
        The pages as a list

    Raises:
        ComparisonError: if the document is missing or a page is malformed
    """
    if pages is None:
        raise ComparisonError(f"{label} document is missing")

    result = list(pages)
    seen = set()
    for position, page in enumerate(result):
        if not isinstance(page, PageModel):
            raise ComparisonError(f"{label} page at position {position} is not a PageModel")
        if page.page_number < 1:
            raise ComparisonError(f"{label} page at position {position} has invalid number {page.page_number}")
        if page.page_number in seen:
            raise ComparisonError(f"{label} document repeats page number {page.page_number}")
        seen.add(page.page_number)
        if page.width <= 0 or page.height <= 0:
            logger.warning("%s page %d has no usable size (%sx%s)", label, page.page_number, page.width, page.height)
    return result
