"""Unit tests for configuration defaults and validation."""

from __future__ import annotations

import platformdirs
import pytest
from pydantic import ValidationError

from pageask.config import (
    _DEFAULT_DATA_DIR,
    _DEFAULT_DB_PATH,
    AcquisitionSettings,
    CacheSettings,
    Settings,
)


class TestPlatformDefaults:
    def test_default_data_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_data_dir("pageask") == _DEFAULT_DATA_DIR

    def test_default_db_path_under_data_dir(self) -> None:
        assert _DEFAULT_DB_PATH.startswith(_DEFAULT_DATA_DIR)
        assert _DEFAULT_DB_PATH.endswith("cache.db")

    def test_cache_settings_uses_platform_default(self) -> None:
        assert CacheSettings().db_path == _DEFAULT_DB_PATH


class TestDefaults:
    def test_cache_ttls(self) -> None:
        settings = CacheSettings()
        assert settings.content_ttl_hours == 168
        assert settings.answer_ttl_hours == 24

    def test_acquisition_heuristics(self) -> None:
        settings = AcquisitionSettings()
        assert settings.complex_query_min_length == 50
        assert settings.max_related_pages == 2
        assert "/docs/" in settings.doc_site_markers
        assert "explain" in settings.complex_query_markers

    def test_generator_model(self) -> None:
        assert Settings().generator.model == "gemini-2.0-flash"

    def test_api_keys_are_secret(self) -> None:
        settings = Settings(scraper={"api_key": "fc-secret"})
        assert "fc-secret" not in repr(settings.scraper)
        assert settings.scraper.api_key is not None
        assert settings.scraper.api_key.get_secret_value() == "fc-secret"


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAGEASK__CACHE__ANSWER_TTL_HOURS", "6")
        monkeypatch.setenv("PAGEASK__GENERATOR__MODEL", "gemini-2.5-flash")
        settings = Settings()
        assert settings.cache.answer_ttl_hours == 6
        assert settings.generator.model == "gemini-2.5-flash"

    def test_init_args_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAGEASK__SERVER__PORT", "9090")
        assert Settings(server={"port": 7070}).server.port == 7070


class TestConfigValidation:
    def test_wrong_type_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(server={"port": "not-a-number"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        """A typo like 'answer_ttl_hour' is caught instead of silently ignored."""
        with pytest.raises(ValidationError):
            CacheSettings(answer_ttl_hour=1)  # type: ignore[call-arg]

    @pytest.mark.parametrize("hours", [0, -1])
    def test_cleanup_interval_must_be_positive(self, hours: int) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(cleanup_interval_hours=hours)

    def test_invalid_transport_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(server={"transport": "carrier-pigeon"})
