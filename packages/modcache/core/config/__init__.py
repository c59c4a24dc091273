"""Configuration file loading for modcache."""

from modcache.core.config.loader import (
    apply_env_overrides,
    detect_format,
    initialize_from_settings,
    load_cache_settings,
    load_config,
)
from modcache.core.config.models import AppConfig, CacheSettings

__all__ = [
    "AppConfig",
    "CacheSettings",
    "apply_env_overrides",
    "detect_format",
    "initialize_from_settings",
    "load_cache_settings",
    "load_config",
]
