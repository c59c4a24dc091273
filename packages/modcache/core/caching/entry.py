"""Per-compilation cache handle.

A ``ModuleCacheEntry`` is built once per module-compile attempt. With the
cache enabled it resolves the file the module's output lives in; with the
cache disabled it holds no path and every operation is a no-op.

Neither ``load`` nor ``store`` ever raises: a broken cache costs a
recompilation, never a failed compilation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from modcache.core.compilation.module import FunctionBody
from modcache.core.compilation.output import CachedPayload
from modcache.core.io import AbsolutePath, FileSystem, RealFileSystem, WriteResult
from modcache.core.utils.logging import get_logger

from . import codec
from .config import CacheConfig, cache_config
from .fingerprint import derive_cache_key
from .models import CacheKey, CompilerIdentity
from .paths import resolve_cache_path
from .protocols import CacheHashable


class ModuleCacheEntry:
    """
    Cache handle for one compilation of one module.

    Example:
        >>> entry = ModuleCacheEntry(module, bodies, "x86_64-unknown-linux-gnu",
        ...                          CompilerIdentity(name="cranelift", version="0.41.0"),
        ...                          generate_debug_info=False, config=config)
        >>> payload = entry.load()
        >>> if payload is None:
        ...     payload = compile_module(module, bodies)
        ...     entry.store(payload)
    """

    def __init__(
        self,
        module: CacheHashable,
        function_bodies: Sequence[FunctionBody] | Mapping[int, FunctionBody],
        target_triple: str,
        compiler: CompilerIdentity,
        generate_debug_info: bool,
        config: CacheConfig | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        """
        Resolve the entry's path (no filesystem access).

        Args:
            module: Module exposing ``hash_for_cache``
            function_bodies: Defined function bodies
            target_triple: Target the module is compiled for
            compiler: Compiler identity (name, version, optional build stamp)
            generate_debug_info: Whether debug info is being generated
            config: Cache configuration; the process-wide one when omitted
            fs: Filesystem implementation (defaults to the real disk)
        """
        self._config = config if config is not None else cache_config()
        self.fs: FileSystem = fs or RealFileSystem()
        self.key: CacheKey | None = None
        self._path: Path | None = None

        if self._config.enabled:
            self.key = derive_cache_key(module, function_bodies)
            self._path = resolve_cache_path(
                self.key,
                target_triple,
                compiler,
                generate_debug_info,
                self._config.directory(),
            )

        self._log = get_logger(__name__, cache_path=str(self._path))

    @property
    def path(self) -> Path | None:
        """Resolved entry path, or None when caching is disabled."""
        return self._path

    @property
    def enabled(self) -> bool:
        """True when the entry is bound to a path."""
        return self._path is not None

    def load(self) -> CachedPayload | None:
        """
        Load the cached payload.

        Returns:
            The payload, or None on miss (disabled, missing, unreadable,
            undecompressable or invalid entry)
        """
        if self._path is None:
            return None
        path = AbsolutePath(self._path)
        self._log.debug("load() for path: %s", path)

        try:
            compressed = self.fs.read_bytes(path)
        except OSError as e:
            self._log.debug("Cache miss, path: %s, message: %s", path, e)
            return None

        try:
            serialized = codec.decompress(compressed)
        except codec.DECOMPRESS_ERRORS as e:
            self._log.warning("Failed to decompress cached code: %s", e)
            self._discard_corrupt(path)
            return None

        try:
            payload = codec.deserialize_payload(serialized)
        except codec.DESERIALIZE_ERRORS as e:
            self._log.warning("Failed to deserialize cached code: %s", e)
            self._discard_corrupt(path)
            return None

        self._log.debug("Cache hit, path: %s", path)
        return payload

    def store(self, payload: CachedPayload) -> bool:
        """
        Store the payload.

        Writes directly first; only when that fails are the parent
        directories created and the write retried once. A failed retry
        removes whatever is left at the target path.

        Args:
            payload: Compiled output to cache

        Returns:
            True if the entry was written, False otherwise (including disabled)
        """
        if self._path is None:
            return False
        path = AbsolutePath(self._path)
        self._log.debug("store() for path: %s", path)

        try:
            serialized = codec.serialize_payload(payload)
        except (ValueError, TypeError) as e:
            self._log.warning("Failed to serialize cached code: %s", e)
            return False

        try:
            compressed = codec.compress(serialized, self._config.compression_level())
        except codec.COMPRESS_ERRORS as e:
            self._log.warning("Failed to compress cached code: %s", e)
            return False

        # Common case: the directory already exists
        try:
            result = self.fs.write_bytes(path, compressed)
            return self._stored(result)
        except OSError as e:
            self._log.debug(
                "Attempting to create the cache directory, because failed to write "
                "cached code to disk, path: %s, message: %s",
                path,
                e,
            )

        cache_dir = AbsolutePath(path.parent)
        try:
            self.fs.mkdirs(cache_dir, exist_ok=True)
        except OSError as e:
            self._log.warning(
                "Failed to create cache directory, path: %s, message: %s", cache_dir, e
            )
            return False

        try:
            result = self.fs.write_bytes(path, compressed)
            return self._stored(result)
        except OSError as e:
            self._log.warning("Failed to write cached code to disk, path: %s, message: %s", path, e)

        self._remove(path, "Failed to cleanup invalid cache")
        return False

    def _stored(self, result: WriteResult) -> bool:
        self._log.debug(
            "Stored %d bytes in %.1f ms, path: %s",
            result.bytes_written,
            result.duration_ms,
            result.path,
        )
        return True

    def _discard_corrupt(self, path: AbsolutePath) -> None:
        """Delete an entry that cannot be decoded, so it is not retried on every miss."""
        if not self._config.remove_corrupt_entries:
            return
        self._remove(path, "Failed to remove corrupt cache entry")

    def _remove(self, path: AbsolutePath, failure_message: str) -> None:
        try:
            self.fs.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._log.warning("%s, path: %s, message: %s", failure_message, path, e)

    def __repr__(self) -> str:
        return f"ModuleCacheEntry(path={self._path!s})"
