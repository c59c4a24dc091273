"""Load cache settings from JSON/YAML files and MODCACHE_* environment variables."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from modcache.core.caching.config import CacheConfig, CacheConfigCell, global_config_cell
from modcache.core.config.models import AppConfig, CacheSettings

logger = logging.getLogger(__name__)

ENV_ENABLED = "MODCACHE_ENABLED"
ENV_DIR = "MODCACHE_DIR"
ENV_COMPRESSION_LEVEL = "MODCACHE_COMPRESSION_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}
_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def detect_format(file_path: Path | str) -> str:
    """Map a config file extension to "json" or "yaml".

    Raises:
        ValueError: For any other extension

    Example:
        >>> detect_format("modcache.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _FORMATS[suffix]
    except KeyError:
        raise ValueError(f"Unsupported config format: {suffix or '(none)'}") from None


def _parse(fmt: str, text: str) -> Any:
    if fmt == "json":
        return json.loads(text)
    content = yaml.safe_load(text)
    # Empty YAML documents parse to None
    return {} if content is None else content


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a JSON or YAML file whose top level is a mapping.

    Args:
        path: Config or manifest file (.json, .yaml, or .yml)

    Returns:
        The parsed mapping

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the extension is unsupported, the content does not
            parse, or the top level is not a mapping
    """
    path = Path(path)
    fmt = detect_format(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file does not exist: {path}") from None

    try:
        content = _parse(fmt, text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Invalid {fmt.upper()} in {path}: {e}") from e

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping in {path}")
    return content


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def apply_env_overrides(
    settings: CacheSettings, environ: Mapping[str, str] | None = None
) -> CacheSettings:
    """Overlay MODCACHE_* environment variables onto settings.

    Args:
        settings: Settings loaded from file (or defaults)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        New settings with overrides applied

    Raises:
        ValueError: If an environment value cannot be parsed
    """
    env = os.environ if environ is None else environ
    updates: dict[str, Any] = {}

    if ENV_ENABLED in env:
        updates["enabled"] = _parse_bool(ENV_ENABLED, env[ENV_ENABLED])
    if env.get(ENV_DIR):
        updates["directory"] = Path(env[ENV_DIR])
    if env.get(ENV_COMPRESSION_LEVEL):
        try:
            updates["compression_level"] = int(env[ENV_COMPRESSION_LEVEL])
        except ValueError as e:
            raise ValueError(
                f"Invalid integer for {ENV_COMPRESSION_LEVEL}: {env[ENV_COMPRESSION_LEVEL]!r}"
            ) from e

    if updates:
        logger.debug("Applying cache settings from environment: %s", sorted(updates))
        return settings.model_copy(update=updates)
    return settings


def load_cache_settings(
    path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> CacheSettings:
    """Load and validate cache settings.

    Reads the ``cache`` section of the config file when one is given, then
    applies environment overrides.

    Args:
        path: Path to config file (.json, .yaml, or .yml), optional
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated CacheSettings

    Raises:
        FileNotFoundError: If path is given but does not exist
        ValueError: If the file or environment is invalid
        ValidationError: If the settings do not validate
    """
    if path is None:
        settings = CacheSettings()
    else:
        app_config = AppConfig.model_validate(load_config(path))
        settings = app_config.cache

    return apply_env_overrides(settings, environ)


def initialize_from_settings(
    settings: CacheSettings, cell: CacheConfigCell | None = None
) -> CacheConfig:
    """Initialize a config cell (the process-wide one by default) from settings.

    Raises:
        CacheConfigError: If the cell was already initialized or read
    """
    cell = cell or global_config_cell()
    return cell.initialize(
        settings.enabled,
        settings.directory,
        settings.compression_level,
        remove_corrupt_entries=settings.remove_corrupt_entries,
    )
