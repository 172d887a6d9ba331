"""Configuration package for EduMate."""

from edumate.config.app_config import (
    AdminConfig,
    AppConfig,
    ExamConfig,
    LLMSettings,
    ProviderConfig,
    StorageConfig,
    clear_config_cache,
    get_provider_config,
    load_app_config,
)

__all__ = [
    "AdminConfig",
    "AppConfig",
    "ExamConfig",
    "LLMSettings",
    "ProviderConfig",
    "StorageConfig",
    "clear_config_cache",
    "get_provider_config",
    "load_app_config",
]
