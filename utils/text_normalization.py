"""Text normalization utilities for fingerprinting and line diffs."""
from __future__ import annotations

import re
import unicodedata
from typing import List, Tuple

_WHITESPACE = re.compile(r"\s+")
_WORD = re.compile(r"\w+", re.UNICODE)


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison by ignoring case and whitespace differences.

    This function:
    - Case-folds the text
    - Normalizes Unicode to NFC so composed/decomposed accents compare equal
    - Collapses runs of whitespace to a single space
    - Strips leading/trailing whitespace

    Examples:
        >>> normalize_text("  Multiple   Spaces  ")
        'multiple spaces'
        >>> normalize_text("Hello\\nWorld")
        'hello world'
    """
    if not text:
        return ""

    normalized = unicodedata.normalize("NFC", text).casefold()
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip()


def tokenize(text: str) -> List[str]:
    """Split normalized text into word tokens (punctuation dropped)."""
    return _WORD.findall(normalize_text(text))


def split_lines(text: str) -> List[Tuple[int, int, str]]:
    """
    Split text into non-blank lines.

    Returns:
        (line_number, start_offset, stripped_line) tuples. Line numbers are
        1-based positions in the original text; offsets index into ``text``.
    """
    lines: List[Tuple[int, int, str]] = []
    offset = 0
    for number, raw in enumerate(text.splitlines(keepends=True), start=1):
        stripped = raw.strip()
        if stripped:
            lead = len(raw) - len(raw.lstrip())
            lines.append((number, offset + lead, stripped))
        offset += len(raw)
    return lines
