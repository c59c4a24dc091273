"""Cache wrapper for compilation.

Provides cached_compile(), the load -> compile -> store protocol.
"""

from collections.abc import Callable
import logging
import time

from modcache.core.compilation.output import CachedPayload

from .protocols import CacheEntryLike

logger = logging.getLogger(__name__)


def cached_compile(
    entry: CacheEntryLike,
    compile: Callable[[], CachedPayload],
    *,
    force: bool = False,
) -> CachedPayload:
    """
    Return the cached output for an entry, compiling on a miss.

    Workflow:
    1. Attempt cache load (unless forced)
    2. On miss: run compile(), store the result
    3. Return the payload

    Exceptions raised by ``compile`` propagate unchanged; the cache itself
    never raises.

    Args:
        entry: Cache entry for this compilation
        compile: Function producing the compiled output on a miss
        force: Ignore any cached output and recompile (result is still stored)

    Returns:
        Cached or freshly compiled payload

    Example:
        >>> payload = cached_compile(
        ...     ModuleCacheEntry(module, bodies, triple, compiler, False, config),
        ...     lambda: compile_module(module, bodies),
        ... )
    """
    if not force:
        cached = entry.load()
        if cached is not None:
            logger.debug("Cache hit: %r", entry)
            return cached

    start = time.perf_counter()
    payload = compile()
    compile_ms = (time.perf_counter() - start) * 1000

    stored = entry.store(payload)
    logger.debug(
        "Cache %s: %r compiled in %.1f ms (stored=%s)",
        "bypass" if force else "miss",
        entry,
        compile_ms,
        stored,
    )
    return payload
