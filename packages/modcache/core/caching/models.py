"""Models for the module cache.

Provides the cache key and the compiler identity folded into cache paths.
"""

import base64

from pydantic import BaseModel, ConfigDict, Field

CACHE_KEY_SIZE = 32  # SHA-256


class CacheKey(BaseModel):
    """
    256-bit digest of a module's compile-relevant content.

    Target, compiler identity and the debug-info flag are NOT part of the
    key; they are folded into the path instead, so one key can be reused
    across targets and compilers.
    """

    model_config = ConfigDict(frozen=True)

    digest: bytes = Field(min_length=CACHE_KEY_SIZE, max_length=CACHE_KEY_SIZE)

    def hex(self) -> str:
        """Hex digest (64 chars)."""
        return self.digest.hex()

    def encoded(self) -> str:
        """URL-safe base64 without padding (43 chars, no path separators)."""
        return base64.urlsafe_b64encode(self.digest).rstrip(b"=").decode("ascii")

    def __str__(self) -> str:
        return self.hex()[:12]


class CompilerIdentity(BaseModel):
    """
    Compiler name, version and (for development builds) build stamp.

    Any change here moves entries to a different directory, which is the
    cache's only invalidation mechanism.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Compiler name (e.g., 'cranelift')")
    version: str = Field(min_length=1, description="Compiler version or revision")
    build_stamp: str | None = Field(
        default=None,
        description="Build stamp for development builds (executable mtime); None for releases",
    )

    def dirname(self) -> str:
        """Readable ``<name>-<version>[-<build_stamp>]``; the cache directory is
        the encoded form from ``paths.compiler_dirname``."""
        if self.build_stamp is None:
            return f"{self.name}-{self.version}"
        return f"{self.name}-{self.version}-{self.build_stamp}"

    def __str__(self) -> str:
        return self.dirname()
