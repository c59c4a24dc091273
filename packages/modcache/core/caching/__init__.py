"""Content-addressed on-disk cache for compiled modules.

Given the same module content, target triple, compiler identity and
debug-info flag, the cache returns previously compiled output instead of
recompiling.

Key features:
- SHA-256 cache keys over compile-relevant module content only
- Hierarchical layout: <root>/<target>/<compiler>-<version>/mod-<key>[.d]
- zstd-compressed, version-checked pydantic payloads
- Freeze-on-first-use configuration (disabled unless initialized)
- Miss-on-error semantics: load/store never raise

Example:
    >>> from modcache.core.caching import CacheConfigCell, CompilerIdentity, ModuleCacheEntry
    >>>
    >>> cell = CacheConfigCell()
    >>> config = cell.initialize(True, "/tmp/modcache")
    >>> entry = ModuleCacheEntry(
    ...     module, bodies, "x86_64-unknown-linux-gnu",
    ...     CompilerIdentity(name="cranelift", version="0.41.0"),
    ...     generate_debug_info=False, config=config,
    ... )
    >>> payload = cached_compile(entry, lambda: compile_module(module, bodies))
"""

from modcache.core.caching.config import (
    DEFAULT_COMPRESSION_LEVEL,
    CacheConfig,
    CacheConfigCell,
    cache_config,
    default_cache_dir,
    global_config_cell,
    init_cache,
)
from modcache.core.caching.entry import ModuleCacheEntry
from modcache.core.caching.errors import CacheConfigError, CacheError
from modcache.core.caching.fingerprint import CacheHasher, derive_cache_key
from modcache.core.caching.models import CacheKey, CompilerIdentity
from modcache.core.caching.paths import (
    compiler_build_stamp,
    development_identity,
    resolve_cache_path,
)
from modcache.core.caching.protocols import CacheEntryLike, CacheHashable
from modcache.core.caching.wrapper import cached_compile

__all__ = [
    # Configuration
    "CacheConfig",
    "CacheConfigCell",
    "DEFAULT_COMPRESSION_LEVEL",
    "cache_config",
    "default_cache_dir",
    "global_config_cell",
    "init_cache",
    # Keys and paths
    "CacheHasher",
    "CacheKey",
    "CompilerIdentity",
    "compiler_build_stamp",
    "derive_cache_key",
    "development_identity",
    "resolve_cache_path",
    # Entries
    "CacheEntryLike",
    "CacheHashable",
    "ModuleCacheEntry",
    "cached_compile",
    # Errors
    "CacheConfigError",
    "CacheError",
]
