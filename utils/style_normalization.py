"""Font and style normalization helpers shared by the font and style differs."""
from __future__ import annotations

import re
from typing import Dict, Optional


# Common PDF font names that belong to the same family
FONT_NAME_MAPPING: Dict[str, str] = {
    "timesnewromanpsmt": "times new roman",
    "timesnewroman": "times new roman",
    "times-roman": "times new roman",
    "times": "times new roman",
    "arialmt": "arial",
    "arial": "arial",
    "helvetica": "arial",
    "helveticaneue": "arial",
    "couriernewpsmt": "courier new",
    "couriernew": "courier new",
    "courier": "courier new",
    "calibri": "calibri",
    "cambria": "cambria",
    "georgia": "georgia",
    "verdana": "verdana",
}

_SUBSET_PREFIX = re.compile(r"^[A-Z]{6}\+")
_STYLE_SUFFIX = re.compile(
    r"[-,_ ]?(bolditalic|boldoblique|bold|italic|oblique|regular|roman|mt|ps|psmt|std)$"
)
_HEX_COLOR = re.compile(r"^#?([0-9a-f]{3}|[0-9a-f]{6}|[0-9a-f]{8})$")


def normalize_font_name(font_name: Optional[str]) -> str:
    """
    Normalize a PDF font name to its family.

    Examples:
        "ABCDEF+TimesNewRomanPSMT" -> "times new roman"
        "Arial-BoldMT" -> "arial"
        "Helvetica" -> "arial"
    """
    if not font_name:
        return ""

    name = _SUBSET_PREFIX.sub("", font_name.strip()).lower()
    # Strip style suffixes repeatedly ("Arial-BoldMT" -> "arial-bold" -> "arial")
    previous = None
    while previous != name:
        previous = name
        name = _STYLE_SUFFIX.sub("", name).strip()

    compact = name.replace(" ", "").replace("-", "").replace("_", "")
    if compact in FONT_NAME_MAPPING:
        return FONT_NAME_MAPPING[compact]
    for key, value in FONT_NAME_MAPPING.items():
        if compact.startswith(key):
            return value
    return name


def font_style_label(bold: bool, italic: bool) -> str:
    if bold and italic:
        return "bold-italic"
    if bold:
        return "bold"
    if italic:
        return "italic"
    return "regular"


def normalize_color(color: Optional[str]) -> Optional[str]:
    """Lower-case ``#rrggbb`` form; short ``#rgb`` is expanded. Unknown formats pass through lower-cased."""
    if color is None:
        return None
    value = color.strip().lower()
    match = _HEX_COLOR.match(value)
    if not match:
        return value
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"
