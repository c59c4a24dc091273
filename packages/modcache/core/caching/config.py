"""Cache configuration with freeze-on-first-use semantics.

``CacheConfig`` is an immutable settings object. ``CacheConfigCell`` owns
the one-time resolution of that object: the first explicit ``initialize``
or the first read freezes it, and it never changes afterwards. Reading
before initializing installs a disabled configuration, so code that never
opts in gets no cache.

Every environmental failure during resolution (no default directory,
directory cannot be created or canonicalized) degrades to a disabled
configuration with a warning. Only API misuse raises ``CacheConfigError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
import threading

from platformdirs import user_cache_dir
from pydantic import BaseModel, ConfigDict, Field

from modcache.core.io import AbsolutePath, FileSystem, RealFileSystem

from .errors import CacheConfigError

logger = logging.getLogger(__name__)

APP_NAME = "modcache"

# 0 means "use the compressor's default level"
DEFAULT_COMPRESSION_LEVEL = 0
MIN_COMPRESSION_LEVEL = -(1 << 17)
MAX_COMPRESSION_LEVEL = 22


class CacheConfig(BaseModel):
    """
    Resolved cache settings.

    A disabled configuration has no root directory. Use ``directory()`` and
    ``compression_level()`` rather than the raw fields when the caller
    requires an enabled cache.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False, description="Whether the cache is used at all")
    root_dir: Path | None = Field(default=None, description="Canonical cache root directory")
    level: int = Field(
        default=DEFAULT_COMPRESSION_LEVEL,
        ge=MIN_COMPRESSION_LEVEL,
        le=MAX_COMPRESSION_LEVEL,
        description="zstd compression level (0 = library default)",
    )
    remove_corrupt_entries: bool = Field(
        default=True,
        description="Delete entries that fail to decompress or deserialize",
    )

    @classmethod
    def disabled(cls) -> CacheConfig:
        """Configuration with the cache turned off."""
        return cls(enabled=False)

    @classmethod
    def resolve(
        cls,
        enabled: bool,
        directory: str | Path | None = None,
        compression_level: int | None = None,
        *,
        remove_corrupt_entries: bool = True,
        fs: FileSystem | None = None,
    ) -> CacheConfig:
        """
        Build a configuration, degrading to disabled on any failure.

        Args:
            enabled: Whether caching is requested
            directory: Cache root; platform user cache dir when omitted
            compression_level: zstd level; default level when omitted
            remove_corrupt_entries: Delete undecodable entries on load
            fs: Filesystem used to create and canonicalize the root

        Returns:
            Enabled configuration with a canonical root, or a disabled one
        """
        if not enabled:
            return cls.disabled()

        if directory is None:
            directory = default_cache_dir()
            if directory is None:
                logger.warning(
                    "Cache directory not specified and failed to find the default. "
                    "Disabling cache."
                )
                return cls.disabled()

        fs = fs or RealFileSystem()
        raw_dir = AbsolutePath(Path(directory))
        try:
            fs.mkdirs(raw_dir, exist_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to create the cache directory. Disabling cache. Message: %s", e
            )
            return cls.disabled()

        try:
            root_dir = fs.canonicalize(raw_dir)
        except OSError as e:
            logger.warning(
                "Failed to canonicalize the cache directory. Disabling cache. Message: %s", e
            )
            return cls.disabled()

        level = DEFAULT_COMPRESSION_LEVEL if compression_level is None else compression_level
        if not MIN_COMPRESSION_LEVEL <= level <= MAX_COMPRESSION_LEVEL:
            logger.warning(
                "Compression level %d is out of range [%d, %d]. Using the default level.",
                level,
                MIN_COMPRESSION_LEVEL,
                MAX_COMPRESSION_LEVEL,
            )
            level = DEFAULT_COMPRESSION_LEVEL

        return cls(
            enabled=True,
            root_dir=Path(root_dir),
            level=level,
            remove_corrupt_entries=remove_corrupt_entries,
        )

    def directory(self) -> Path:
        """
        Cache root directory.

        Raises:
            CacheConfigError: If the cache is disabled
        """
        if not self.enabled or self.root_dir is None:
            raise CacheConfigError("Cache directory requested but the cache is disabled")
        return self.root_dir

    def compression_level(self) -> int:
        """
        Compression level.

        Raises:
            CacheConfigError: If the cache is disabled
        """
        if not self.enabled:
            raise CacheConfigError("Compression level requested but the cache is disabled")
        return self.level


def default_cache_dir() -> Path | None:
    """Platform-specific user cache directory for modcache, or None."""
    try:
        path = user_cache_dir(APP_NAME, appauthor=False)
    except (OSError, KeyError, RuntimeError) as e:
        logger.debug("Could not determine the user cache directory: %s", e)
        return None
    return Path(path) if path else None


class CacheConfigCell:
    """
    Holds a ``CacheConfig`` that is resolved exactly once.

    Thread-safe: concurrent first reads and initializations observe a single
    frozen value.
    """

    def __init__(self, fs: FileSystem | None = None) -> None:
        self._fs = fs
        self._lock = threading.Lock()
        self._config: CacheConfig | None = None
        self._init_called = False

    def initialize(
        self,
        enabled: bool,
        directory: str | Path | None = None,
        compression_level: int | None = None,
        *,
        remove_corrupt_entries: bool = True,
    ) -> CacheConfig:
        """
        Resolve and freeze the configuration.

        Raises:
            CacheConfigError: If called twice, or after the configuration was read
        """
        with self._lock:
            if self._init_called:
                raise CacheConfigError("Cache system init must be called at most once")
            self._init_called = True
            if self._config is not None:
                raise CacheConfigError("Cache system init must be called before using the system")

            self._config = CacheConfig.resolve(
                enabled,
                directory,
                compression_level,
                remove_corrupt_entries=remove_corrupt_entries,
                fs=self._fs,
            )
            config = self._config

        logger.debug(
            "Cache init(): enabled=%s, cache-dir=%s, compression-level=%d",
            config.enabled,
            config.root_dir,
            config.level,
        )
        return config

    def get(self) -> CacheConfig:
        """Frozen configuration; installs a disabled one if never initialized."""
        with self._lock:
            if self._config is None:
                self._config = CacheConfig.disabled()
            return self._config

    @property
    def is_frozen(self) -> bool:
        """True once the configuration has been initialized or read."""
        return self._config is not None

    def is_enabled(self) -> bool:
        """True if and only if the cache is enabled."""
        return self.get().enabled

    def directory(self) -> Path:
        """Cache root directory. Raises CacheConfigError when disabled."""
        return self.get().directory()

    def compression_level(self) -> int:
        """Compression level. Raises CacheConfigError when disabled."""
        return self.get().compression_level()


# Process-wide cell for callers that do not pass a configuration explicitly
_global_cell = CacheConfigCell()


def global_config_cell() -> CacheConfigCell:
    """Process-wide configuration cell."""
    return _global_cell


def init_cache(
    enabled: bool,
    directory: str | Path | None = None,
    compression_level: int | None = None,
    *,
    remove_corrupt_entries: bool = True,
) -> CacheConfig:
    """Initialize the process-wide configuration (at most once per process)."""
    return _global_cell.initialize(
        enabled,
        directory,
        compression_level,
        remove_corrupt_entries=remove_corrupt_entries,
    )


def cache_config() -> CacheConfig:
    """Process-wide configuration (disabled unless ``init_cache`` ran first)."""
    return _global_cell.get()
