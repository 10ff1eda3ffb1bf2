from __future__ import annotations

import pytest
from pydantic import ValidationError


def test_settings_read_prefixed_environment(monkeypatch):
    from config.settings import Settings

    monkeypatch.setenv("DOCALIGN_SIMILARITY_THRESHOLD", "0.7")
    monkeypatch.setenv("DOCALIGN_MAX_CONCURRENT_COMPARISONS", "8")

    settings = Settings()
    assert settings.similarity_threshold == 0.7
    assert settings.max_concurrent_comparisons == 8


def test_config_from_settings_uses_settings_values(monkeypatch):
    from config.comparison_config import ComparisonConfig
    from config.settings import settings

    monkeypatch.setattr(settings, "similarity_threshold", 0.65, raising=False)
    monkeypatch.setattr(settings, "retry_count", 0, raising=False)

    config = ComparisonConfig.from_settings()
    assert config.similarity_threshold == 0.65
    assert config.retry_count == 0
    assert ComparisonConfig.build(None).similarity_threshold == 0.65


def test_config_accepts_camel_case_and_snake_case():
    from config.comparison_config import ComparisonConfig

    camel = ComparisonConfig.build({"maxCandidatesPerPage": 5, "contentWeight": 0.6, "visualWeight": 0.4})
    snake = ComparisonConfig.build({"max_candidates_per_page": 5, "content_weight": 0.6, "visual_weight": 0.4})
    assert camel == snake
    assert camel.max_candidates_per_page == 5


def test_config_validation_errors():
    from comparison.errors import ConfigError
    from config.comparison_config import ComparisonConfig

    with pytest.raises(ConfigError, match="content_weight \\+ visual_weight"):
        ComparisonConfig.build({"contentWeight": 0.5, "visualWeight": 0.4})
    with pytest.raises(ConfigError):
        ComparisonConfig.build({"retryCount": -1})
    with pytest.raises(ConfigError):
        ComparisonConfig.build({"maxConcurrentComparisons": 0})
    with pytest.raises(ValidationError):
        ComparisonConfig(image_similarity_threshold=2.0)


def test_config_is_frozen_and_digest_tracks_values():
    from config.comparison_config import ComparisonConfig

    config = ComparisonConfig()
    with pytest.raises(ValidationError):
        config.similarity_threshold = 0.9  # type: ignore[misc]

    assert config.digest() == ComparisonConfig().digest()
    assert config.digest() != ComparisonConfig(similarity_threshold=0.9).digest()
    assert ComparisonConfig.build(config) is config


def test_errors_carry_context():
    from comparison.errors import ComparisonError, DiffUnitError, ExtractionError

    err = DiffUnitError(3, ValueError("bad"))
    assert err.pair_index == 3 and isinstance(err.cause, ValueError)
    assert isinstance(err, ComparisonError)
    assert ExtractionError("unreadable", page_number=2).page_number == 2
