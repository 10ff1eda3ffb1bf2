"""Configuration management for alignment weights, thresholds, and worker settings."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOCALIGN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Page Similarity
    content_weight: float = Field(
        default=0.7,
        description="Weight of the text shingle (content) sub-score in page similarity",
    )
    visual_weight: float = Field(
        default=0.3,
        description="Weight of the visual signature sub-score in page similarity",
    )
    similarity_threshold: float = Field(
        default=0.5,
        description="Minimum combined similarity (0.0-1.0) for two pages to be matched",
    )

    # Alignment
    max_candidates_per_page: int = Field(
        default=3,
        description="Candidate window size W: compare pages within ±W of the base index are scored first",
    )

    # Fingerprints
    shingle_size: int = Field(
        default=3,
        description="Number of words per text shingle",
    )
    signature_length: int = Field(
        default=16,
        description="Length of the visual signature vector",
    )

    # Element Comparison Thresholds
    image_similarity_threshold: float = Field(
        default=0.1,
        description="Normalized hash distance (0.0-1.0) above which a matched image is reported as modified",
    )
    image_position_tolerance: float = Field(
        default=5.0,
        description="Maximum position/size offset in points for matching images without a stable id",
    )
    run_position_tolerance: float = Field(
        default=2.0,
        description="Maximum offset in points for text runs to count as occupying the same position",
    )
    font_size_tolerance: float = Field(
        default=0.1,
        description="Font size difference in points that is still treated as unchanged",
    )
    style_tolerance: float = Field(
        default=0.01,
        description="Absolute tolerance for numeric style attributes (opacity, line height, spacing)",
    )

    # Concurrency
    max_concurrent_comparisons: int = Field(
        default=4,
        description="Worker pool size for per-pair difference computation",
    )
    retry_count: int = Field(
        default=2,
        description="Retries for a failing page pair before it is marked unavailable",
    )
    retry_delay: float = Field(
        default=0.1,
        description="Fixed delay in seconds between retries",
    )
    cache_size: int = Field(
        default=256,
        description="Maximum entries per cache namespace (fingerprints, pair results)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level used by configure_logging")


def get_settings() -> Settings:
    """Return a cached settings instance."""
    return _get_settings()


@lru_cache()
def _get_settings() -> Settings:
    return Settings()


settings = get_settings()
