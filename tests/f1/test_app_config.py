"""Tests for app configuration (F1).

Tests the configuration loading, defaults and environment lookups.
"""

import pytest

from edumate.config import app_config
from edumate.config.app_config import (
    AdminConfig,
    AppConfig,
    ProviderConfig,
    clear_config_cache,
    get_provider_config,
    load_app_config,
)


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_config_cache()
    yield
    clear_config_cache()


class TestLoadAppConfig:
    """Tests for load_app_config function."""

    def test_missing_file_uses_defaults(self, tmp_path):
        """Missing config file falls back to built-in defaults."""
        config = load_app_config(config_file=tmp_path / "missing.yaml")

        assert isinstance(config, AppConfig)
        assert set(config.providers) == {"lmstudio", "openai", "gemini"}
        assert config.llm.default_provider == "lmstudio"
        assert config.exam.chapter_seconds == 3600
        assert config.exam.full_syllabus_seconds == 10800
        assert config.storage.quota_bytes == 5 * 1024 * 1024

    def test_partial_override(self, tmp_path):
        """Sections present in YAML override only the keys they set."""
        path = tmp_path / "app_config_v1.yaml"
        path.write_text(
            "exam:\n  chapter_minutes: 45\nstorage:\n  quota_bytes: 1024\n",
            encoding="utf-8",
        )

        config = load_app_config(config_file=path)

        assert config.exam.chapter_minutes == 45
        assert config.exam.full_syllabus_minutes == 180
        assert config.storage.quota_bytes == 1024
        assert config.storage.db_path == "data/state/edumate.db"

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        config = load_app_config(config_file=path)

        assert config.llm.temperature == 0.7

    def test_cached_between_calls(self, tmp_path, monkeypatch):
        monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "missing.yaml")

        first = load_app_config()
        second = load_app_config()

        assert first is second
        assert load_app_config(force_reload=True) is not first

    def test_explicit_file_bypasses_cache(self, tmp_path, monkeypatch):
        monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "missing.yaml")
        cached = load_app_config()

        path = tmp_path / "other.yaml"
        path.write_text("llm:\n  default_provider: gemini\n", encoding="utf-8")

        assert load_app_config(config_file=path).llm.default_provider == "gemini"
        assert load_app_config() is cached


class TestProviderConfig:
    """Tests for provider lookups."""

    def test_get_provider_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "missing.yaml")

        provider = get_provider_config("gemini")

        assert provider is not None
        assert provider.api_key_env == "GEMINI_API_KEY"
        assert get_provider_config("unknown") is None

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        provider = ProviderConfig(base_url=None, default_model="gpt-4o-mini", api_key_env="OPENAI_API_KEY")

        assert provider.get_api_key() == "sk-test"

    def test_no_api_key_env(self):
        provider = ProviderConfig(base_url="http://localhost:1234/v1", default_model="local")

        assert provider.get_api_key() is None


class TestAdminConfig:
    """Tests for admin password lookup."""

    def test_password_from_env(self, monkeypatch):
        monkeypatch.setenv("EDUMATE_ADMIN_PASSWORD", "s3cret")

        assert AdminConfig().get_password() == "s3cret"

    def test_empty_password_is_unset(self, monkeypatch):
        monkeypatch.setenv("EDUMATE_ADMIN_PASSWORD", "")

        assert AdminConfig().get_password() is None
