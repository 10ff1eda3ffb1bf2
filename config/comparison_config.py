"""Per-run comparison options, validated before any work starts."""
from __future__ import annotations

import hashlib
import json
import math
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from comparison.errors import ConfigError
from config.settings import Settings, settings as default_settings


class ComparisonConfig(BaseModel):
    """Options recognised by ``compare``.

    Field names are snake_case; the camelCase spelling used by the serving
    layer (``contentWeight``, ``maxCandidatesPerPage`` ...) is accepted too.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    content_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    visual_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    similarity_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    max_candidates_per_page: int = Field(default=3, ge=0)
    image_similarity_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    max_concurrent_comparisons: int = Field(default=4, ge=1)
    retry_count: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=0.1, ge=0.0)

    font_size_tolerance: float = Field(default=0.1, ge=0.0)
    style_tolerance: float = Field(default=0.01, ge=0.0)
    image_position_tolerance: float = Field(default=5.0, ge=0.0)
    run_position_tolerance: float = Field(default=2.0, gt=0.0)
    shingle_size: int = Field(default=3, ge=1)
    signature_length: int = Field(default=16, ge=9)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "ComparisonConfig":
        total = self.content_weight + self.visual_weight
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(
                f"content_weight + visual_weight must equal 1 (got {total:.6f})"
            )
        return self

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "ComparisonConfig":
        """Build a config from the environment-backed settings."""
        source = source or default_settings
        values = {name: getattr(source, name) for name in cls.model_fields if hasattr(source, name)}
        return cls.build(values)

    @classmethod
    def build(cls, values: "ComparisonConfig | Mapping[str, Any] | None" = None) -> "ComparisonConfig":
        """Validate ``values`` into a config, raising ConfigError on bad input."""
        if isinstance(values, ComparisonConfig):
            return values
        if values is None:
            return cls.from_settings()
        try:
            return cls.model_validate(dict(values))
        except ValidationError as exc:
            raise ConfigError(f"Invalid comparison config: {exc}") from exc

    def digest(self) -> str:
        """Short stable hash of every option, used to key cached pair results."""
        payload = json.dumps(self.model_dump(), sort_keys=True)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:12]
