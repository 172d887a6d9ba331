"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
and fills every missing section with built-in defaults.

Usage:
    from edumate.config.app_config import load_app_config, get_provider_config

    config = load_app_config()
    provider = get_provider_config("lmstudio")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class ProviderConfig:
    """Configuration for a single LLM provider."""

    base_url: str | None
    default_model: str
    api_key_env: str | None = None

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class LLMSettings:
    """Defaults applied to every collaborator call."""

    default_provider: str = "lmstudio"
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: int = 120


@dataclass
class ExamConfig:
    """Mock exam timing."""

    chapter_minutes: int = 60
    full_syllabus_minutes: int = 180
    tick_interval_seconds: float = 1.0

    @property
    def chapter_seconds(self) -> int:
        return self.chapter_minutes * 60

    @property
    def full_syllabus_seconds(self) -> int:
        return self.full_syllabus_minutes * 60


@dataclass
class StorageConfig:
    """Record store location and quota."""

    db_path: str = "data/state/edumate.db"
    quota_bytes: int = 5 * 1024 * 1024


@dataclass
class AdminConfig:
    """Admin console access."""

    password_env: str = "EDUMATE_ADMIN_PASSWORD"

    def get_password(self) -> str | None:
        """Get admin password from environment variable."""
        return os.environ.get(self.password_env) or None


@dataclass
class AppConfig:
    """Application-wide configuration."""

    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    llm: LLMSettings = field(default_factory=LLMSettings)
    exam: ExamConfig = field(default_factory=ExamConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "providers": {
            "lmstudio": {
                "base_url": "http://localhost:1234/v1",
                "default_model": "llama-3.2-3b-instruct",
                "api_key_env": None,
            },
            "openai": {
                "base_url": None,
                "default_model": "gpt-4o-mini",
                "api_key_env": "OPENAI_API_KEY",
            },
            "gemini": {
                "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
                "default_model": "gemini-2.5-flash",
                "api_key_env": "GEMINI_API_KEY",
            },
        },
        "llm": {
            "default_provider": "lmstudio",
            "temperature": 0.7,
            "max_tokens": 4096,
            "timeout": 120,
        },
        "exam": {
            "chapter_minutes": 60,
            "full_syllabus_minutes": 180,
            "tick_interval_seconds": 1.0,
        },
        "storage": {
            "db_path": "data/state/edumate.db",
            "quota_bytes": 5 * 1024 * 1024,
        },
        "admin": {
            "password_env": "EDUMATE_ADMIN_PASSWORD",
        },
    }


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge each top-level section of overrides onto defaults."""
    result = dict(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = {**result[key], **value}
        else:
            result[key] = value
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    providers = {}
    for name, pconfig in data.get("providers", {}).items():
        providers[name] = ProviderConfig(
            base_url=pconfig.get("base_url"),
            default_model=pconfig.get("default_model", "default"),
            api_key_env=pconfig.get("api_key_env"),
        )

    llm_data = data.get("llm", {})
    llm = LLMSettings(
        default_provider=llm_data.get("default_provider", "lmstudio"),
        temperature=float(llm_data.get("temperature", 0.7)),
        max_tokens=int(llm_data.get("max_tokens", 4096)),
        timeout=int(llm_data.get("timeout", 120)),
    )

    exam_data = data.get("exam", {})
    exam = ExamConfig(
        chapter_minutes=int(exam_data.get("chapter_minutes", 60)),
        full_syllabus_minutes=int(exam_data.get("full_syllabus_minutes", 180)),
        tick_interval_seconds=float(exam_data.get("tick_interval_seconds", 1.0)),
    )

    storage_data = data.get("storage", {})
    storage = StorageConfig(
        db_path=storage_data.get("db_path", "data/state/edumate.db"),
        quota_bytes=int(storage_data.get("quota_bytes", 5 * 1024 * 1024)),
    )

    admin_data = data.get("admin", {})
    admin = AdminConfig(
        password_env=admin_data.get("password_env", "EDUMATE_ADMIN_PASSWORD"),
    )

    return AppConfig(
        providers=providers,
        llm=llm,
        exam=exam,
        storage=storage,
        admin=admin,
    )


def load_app_config(
    force_reload: bool = False,
    config_file: Path | None = None,
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternative YAML file (bypasses the cache).

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if config_file is None and _cached_config is not None and not force_reload:
        return _cached_config

    path = config_file or CONFIG_FILE
    defaults = _get_defaults()

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        data = _merge(defaults, loaded)
    else:
        logger.info("using_default_config", missing=str(path))
        data = defaults

    config = _parse_config(data)
    if config_file is None:
        _cached_config = config
    return config


def get_provider_config(provider: str) -> ProviderConfig | None:
    """Get configuration for a specific provider.

    Args:
        provider: Provider name (e.g., "lmstudio", "openai")

    Returns:
        ProviderConfig or None if provider not found.
    """
    config = load_app_config()
    return config.providers.get(provider)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
