"""Protocols for cache collaborators."""

from collections.abc import Mapping, Sequence
from typing import Protocol

from modcache.core.compilation.module import FunctionBody
from modcache.core.compilation.output import CachedPayload

from .fingerprint import CacheHasher


class CacheHashable(Protocol):
    """
    A module representation that can feed its compile-relevant bytes into a
    hasher.

    Implementations must visit fields in a fixed order that does not depend
    on incidental representation details such as dict insertion order.
    """

    def hash_for_cache(
        self,
        function_bodies: Sequence[FunctionBody] | Mapping[int, FunctionBody],
        hasher: CacheHasher,
    ) -> None:
        """Write every compile-relevant byte of the module into ``hasher``."""
        ...


class CacheEntryLike(Protocol):
    """
    Per-compile cache handle.

    Both operations absorb every runtime failure:
    - ``load`` returns None on any miss (disabled, absent, unreadable, corrupt)
    - ``store`` returns False when nothing was cached
    """

    def load(self) -> CachedPayload | None:
        """Load the cached payload, None on miss."""
        ...

    def store(self, payload: CachedPayload) -> bool:
        """Store the payload, True when it was written."""
        ...
