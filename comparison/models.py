"""Shared data models for page fingerprints, alignment, and differences."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Literal, Mapping, Optional, Tuple, Type


ChangeType = Literal["added", "deleted", "modified"]
Severity = Literal["minor", "major", "critical"]
DifferenceKind = Literal["text", "image", "font", "style", "metadata"]
PairStatus = Literal["matched", "added", "deleted"]
PageStatus = Literal["compared", "unavailable"]


@dataclass(frozen=True)
class BoundingBox:
    """Rectangle in absolute page points: {x, y, width, height}."""
    x: float
    y: float
    width: float
    height: float

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height

    def union(self, other: "BoundingBox") -> "BoundingBox":
        x0 = min(self.x, other.x)
        y0 = min(self.y, other.y)
        return BoundingBox(x0, y0, max(self.x1, other.x1) - x0, max(self.y1, other.y1) - y0)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_element(cls, element) -> "BoundingBox":
        """Box of anything carrying x/y/width/height (text runs, images)."""
        return cls(float(element.x), float(element.y), float(element.width), float(element.height))


# --------------------------------------------------------------------------
# Extracted page content (input, owned by the extractor)
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class TextRun:
    text: str
    x: float
    y: float
    width: float
    height: float
    font_name: Optional[str] = None
    font_size: Optional[float] = None
    bold: bool = False
    italic: bool = False
    color: Optional[str] = None  # "#rrggbb"
    background_color: Optional[str] = None
    opacity: Optional[float] = None
    line_height: Optional[float] = None
    character_spacing: Optional[float] = None
    alignment: Optional[str] = None


@dataclass(frozen=True)
class ImageInfo:
    image_hash: Optional[str]
    x: float
    y: float
    width: float
    height: float
    format: Optional[str] = None
    image_id: Optional[str] = None


@dataclass(frozen=True)
class FontUsage:
    name: str
    family: Optional[str] = None
    encoding: Optional[str] = None
    embedded: Optional[bool] = None
    subset: Optional[bool] = None


@dataclass(frozen=True)
class PageModel:
    page_number: int
    width: float
    height: float
    text: str = ""
    text_runs: Tuple[TextRun, ...] = ()
    images: Tuple[ImageInfo, ...] = ()
    fonts: Tuple[FontUsage, ...] = ()
    metadata: Mapping[str, str] = field(default_factory=dict)
    content_unavailable: bool = False
    unavailable_reason: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept lists from extractors; store immutable tuples.
        for name in ("text_runs", "images", "fonts"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @classmethod
    def unavailable(
        cls,
        page_number: int,
        width: float = 0.0,
        height: float = 0.0,
        reason: str = "page could not be extracted",
    ) -> "PageModel":
        """Present-but-contentless placeholder for a page the extractor failed on."""
        return cls(
            page_number=page_number,
            width=width,
            height=height,
            content_unavailable=True,
            unavailable_reason=reason,
        )

    @property
    def full_text(self) -> str:
        if self.text:
            return self.text
        return "\n".join(run.text for run in self.text_runs if run.text)

    @property
    def bounds(self) -> BoundingBox:
        return BoundingBox(0.0, 0.0, float(self.width), float(self.height))

    def font_usage(self, name: Optional[str]) -> Optional[FontUsage]:
        if not name:
            return None
        for usage in self.fonts:
            if usage.name == name:
                return usage
        return None


# --------------------------------------------------------------------------
# Derived values (owned by the core, one comparison run)
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class Fingerprint:
    page_number: int
    shingles: frozenset
    visual_signature: Tuple[float, ...]
    text_run_count: int = 0
    image_count: int = 0
    word_count: int = 0
    font_names: frozenset = frozenset()
    content_unavailable: bool = False

    @property
    def has_text(self) -> bool:
        return bool(self.shingles)


@dataclass(frozen=True)
class SimilarityScore:
    value: float
    content: float
    visual: float


@dataclass(frozen=True)
class PagePair:
    """One alignment outcome. Page numbers are 1-based; None marks the missing side."""
    base_page: Optional[int]
    compare_page: Optional[int]
    score: Optional[SimilarityScore] = None

    @property
    def is_matched(self) -> bool:
        return self.base_page is not None and self.compare_page is not None

    @property
    def is_added(self) -> bool:
        return self.base_page is None

    @property
    def is_deleted(self) -> bool:
        return self.compare_page is None

    @property
    def status(self) -> PairStatus:
        if self.is_added:
            return "added"
        if self.is_deleted:
            return "deleted"
        return "matched"


# --------------------------------------------------------------------------
# Differences (closed tagged variant; switch on ``kind``)
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class Difference:
    change_type: ChangeType
    base_page: Optional[int] = None
    compare_page: Optional[int] = None
    bbox: Optional[BoundingBox] = None
    id: str = ""
    severity: Optional[Severity] = None
    description: str = ""

    kind: DifferenceKind = field(init=False, default="text")


@dataclass(frozen=True)
class TextDifference(Difference):
    base_text: Optional[str] = None
    compare_text: Optional[str] = None
    start_line: int = 0
    end_line: int = 0
    start_index: int = 0
    end_index: int = 0
    context_before: Optional[str] = None
    context_after: Optional[str] = None
    changed_ratio: float = 0.0
    similarity: Optional[float] = None
    page_level: bool = False

    kind: DifferenceKind = field(init=False, default="text")


@dataclass(frozen=True)
class ImageDifference(Difference):
    base_hash: Optional[str] = None
    compare_hash: Optional[str] = None
    base_image_id: Optional[str] = None
    compare_image_id: Optional[str] = None
    base_format: Optional[str] = None
    compare_format: Optional[str] = None
    base_width: Optional[float] = None
    base_height: Optional[float] = None
    compare_width: Optional[float] = None
    compare_height: Optional[float] = None
    similarity: Optional[float] = None

    kind: DifferenceKind = field(init=False, default="image")


@dataclass(frozen=True)
class FontDifference(Difference):
    base_font: Optional[str] = None
    compare_font: Optional[str] = None
    base_family: Optional[str] = None
    compare_family: Optional[str] = None
    base_style: Optional[str] = None
    compare_style: Optional[str] = None
    base_size: Optional[float] = None
    compare_size: Optional[float] = None
    base_encoding: Optional[str] = None
    compare_encoding: Optional[str] = None
    base_embedded: Optional[bool] = None
    compare_embedded: Optional[bool] = None
    has_name_changed: bool = False
    has_family_changed: bool = False
    has_style_changed: bool = False
    has_size_changed: bool = False
    has_encoding_changed: bool = False
    has_embedding_changed: bool = False
    sample_text: Optional[str] = None
    occurrences: int = 1

    kind: DifferenceKind = field(init=False, default="font")


STYLE_ATTRIBUTES: Tuple[str, ...] = (
    "color",
    "background_color",
    "opacity",
    "line_height",
    "character_spacing",
    "alignment",
)


@dataclass(frozen=True)
class StyleDifference(Difference):
    """Only attributes that changed are set; None on both sides means unchanged."""
    text: Optional[str] = None
    base_color: Optional[str] = None
    compare_color: Optional[str] = None
    base_background_color: Optional[str] = None
    compare_background_color: Optional[str] = None
    base_opacity: Optional[float] = None
    compare_opacity: Optional[float] = None
    base_line_height: Optional[float] = None
    compare_line_height: Optional[float] = None
    base_character_spacing: Optional[float] = None
    compare_character_spacing: Optional[float] = None
    base_alignment: Optional[str] = None
    compare_alignment: Optional[str] = None
    changed_attributes: Tuple[str, ...] = ()

    kind: DifferenceKind = field(init=False, default="style")


@dataclass(frozen=True)
class MetadataDifference(Difference):
    key: str = ""
    base_value: Optional[str] = None
    compare_value: Optional[str] = None
    only_in_base: bool = False
    only_in_compare: bool = False
    value_different: bool = False

    kind: DifferenceKind = field(init=False, default="metadata")


DIFFERENCE_TYPES: Dict[str, Type[Difference]] = {
    "text": TextDifference,
    "image": ImageDifference,
    "font": FontDifference,
    "style": StyleDifference,
    "metadata": MetadataDifference,
}


# --------------------------------------------------------------------------
# Aggregated output
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class PageComparison:
    index: int
    pair: PagePair
    status: PageStatus = "compared"
    differences: Tuple[Difference, ...] = ()
    unavailable_reason: Optional[str] = None
    base_size: Optional[Tuple[float, float]] = None
    compare_size: Optional[Tuple[float, float]] = None

    @property
    def has_differences(self) -> bool:
        return bool(self.differences)


@dataclass(frozen=True)
class ComparisonSummary:
    total: int = 0
    by_type: Mapping[str, int] = field(default_factory=dict)
    by_severity: Mapping[str, int] = field(default_factory=dict)
    by_change_type: Mapping[str, int] = field(default_factory=dict)
    matched_pairs: int = 0
    added_pages: int = 0
    deleted_pages: int = 0
    unavailable_pairs: int = 0

    def __post_init__(self) -> None:
        for name in ("by_type", "by_severity", "by_change_type"):
            object.__setattr__(self, name, _read_only(getattr(self, name)))


@dataclass(frozen=True)
class ComparisonResult:
    base_page_count: int
    compare_page_count: int
    metadata_differences: Mapping[str, MetadataDifference] = field(default_factory=dict)
    pages: Tuple[PageComparison, ...] = ()
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata_differences", _read_only(self.metadata_differences))

    def differences(self) -> Iterator[Difference]:
        """All differences: page pairs in order, then metadata."""
        for page in self.pages:
            yield from page.differences
        yield from self.metadata_differences.values()


def _read_only(mapping: Mapping) -> Mapping:
    """Snapshot ``mapping`` behind a read-only view."""
    return MappingProxyType(dict(mapping))
