"""Fingerprinting utilities for cache keys.

Provides stable module hashing for deterministic cache keys.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import hashlib
import struct
from typing import TYPE_CHECKING

from .models import CacheKey

if TYPE_CHECKING:
    from modcache.core.compilation.module import FunctionBody

    from .protocols import CacheHashable

_LEN = struct.Struct("<Q")


class CacheHasher:
    """
    SHA-256 hasher with framing for structured input.

    Variable-size values are length-prefixed so adjacent fields can never
    run together (``b"ab" + b"c"`` hashes differently from ``b"a" + b"bc"``).
    """

    def __init__(self) -> None:
        self._sha = hashlib.sha256()

    def write(self, data: bytes) -> None:
        """Feed raw, unframed bytes."""
        self._sha.update(data)

    def update_bytes(self, data: bytes) -> None:
        """Feed a length-prefixed byte string."""
        self._sha.update(_LEN.pack(len(data)))
        self._sha.update(data)

    def update_str(self, value: str) -> None:
        """Feed a length-prefixed UTF-8 string."""
        self.update_bytes(value.encode("utf-8"))

    def update_int(self, value: int) -> None:
        """Feed a signed integer of any size as length-prefixed two's complement."""
        width = (value.bit_length() + 8) // 8
        self.update_bytes(value.to_bytes(width, "little", signed=True))

    def digest(self) -> bytes:
        """Return the 32-byte digest of everything fed so far."""
        return self._sha.digest()


def derive_cache_key(
    module: CacheHashable,
    function_bodies: Sequence[FunctionBody] | Mapping[int, FunctionBody],
) -> CacheKey:
    """
    Compute the cache key of a module and its function bodies.

    Only compile-relevant content goes in. Target triple, compiler identity
    and the debug-info flag are added later by the path scheme.

    Args:
        module: Module exposing ``hash_for_cache``
        function_bodies: Defined function bodies in index order (or keyed by index)

    Returns:
        CacheKey wrapping the SHA-256 digest

    Example:
        >>> key = derive_cache_key(Module(functions=[0]), [FunctionBody(data=b"\\x00\\x0b")])
        >>> len(key.encoded())
        43
    """
    hasher = CacheHasher()
    module.hash_for_cache(function_bodies, hasher)
    return CacheKey(digest=hasher.digest())
