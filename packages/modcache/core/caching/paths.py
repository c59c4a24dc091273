"""On-disk layout of cache entries.

    <root>/<target-triple>/<compiler>-<version>[-<build-stamp>]/mod-<base64url key>[.d]

Path resolution is pure: nothing here touches the filesystem except
``compiler_build_stamp``, which reads the compiler executable's mtime once
per process.
"""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path
import sys

from modcache.core.io import sanitize_path_component

from .models import CacheKey, CompilerIdentity

logger = logging.getLogger(__name__)

ENTRY_PREFIX = "mod-"
DEBUG_INFO_SUFFIX = ".d"
NO_MTIME = "no-mtime"


def entry_filename(key: CacheKey, generate_debug_info: bool) -> str:
    """File name of an entry: debug and non-debug builds never share a file."""
    suffix = DEBUG_INFO_SUFFIX if generate_debug_info else ""
    return f"{ENTRY_PREFIX}{key.encoded()}{suffix}"


def compiler_dirname(compiler: CompilerIdentity) -> str:
    """
    Directory name for a compiler identity, safe as a single path component.

    Fields are encoded separately. The name keeps its dashes; version and
    build stamp have theirs escaped, so ``("a-b", "c")`` and ``("a", "b-c")``
    land in different directories.
    """
    fields = [sanitize_path_component(compiler.name)]
    fields.append(sanitize_path_component(compiler.version, escape_dash=True))
    if compiler.build_stamp is not None:
        fields.append(sanitize_path_component(compiler.build_stamp, escape_dash=True))
    return "-".join(fields)


def resolve_cache_path(
    key: CacheKey,
    target_triple: str,
    compiler: CompilerIdentity,
    generate_debug_info: bool,
    root: Path,
) -> Path:
    """
    Map a key plus target/compiler identity to the entry's file path.

    Args:
        key: Module cache key
        target_triple: Target triple (e.g., "x86_64-unknown-linux-gnu")
        compiler: Compiler identity
        generate_debug_info: Whether debug info was requested
        root: Cache root directory

    Returns:
        Path of the entry file

    Example:
        >>> resolve_cache_path(key, "x86_64-unknown-linux-gnu",
        ...                    CompilerIdentity(name="ref-compiler", version="1.0.0"),
        ...                    False, Path("/tmp/c"))
        PosixPath('/tmp/c/x86_64-unknown-linux-gnu/ref-compiler-1.0.0/mod-...')
    """
    return (
        Path(root)
        / sanitize_path_component(target_triple)
        / compiler_dirname(compiler)
        / entry_filename(key, generate_debug_info)
    )


@functools.cache
def compiler_build_stamp(executable: str | None = None) -> str:
    """
    Modification time of the compiler executable in milliseconds.

    Used as the build stamp of development builds, so rebuilding the compiler
    invalidates its entries without a version bump. Times before the epoch
    are prefixed with ``m``; ``no-mtime`` when the mtime cannot be read.

    Args:
        executable: Path of the compiler executable (defaults to sys.executable)

    Returns:
        Build stamp string
    """
    path = executable or sys.executable
    if not path:
        logger.warning("Failed to get path of current executable")
        return NO_MTIME

    try:
        mtime_ns = os.stat(path).st_mtime_ns
    except OSError as e:
        logger.warning("Failed to get metadata of current executable: %s", e)
        return NO_MTIME

    if mtime_ns < 0:
        return f"m{-mtime_ns // 1_000_000}"
    return str(mtime_ns // 1_000_000)


def development_identity(
    name: str, version: str, executable: str | Path | None = None
) -> CompilerIdentity:
    """Compiler identity stamped with the executable's mtime."""
    return CompilerIdentity(
        name=name,
        version=version,
        build_stamp=compiler_build_stamp(str(executable) if executable else None),
    )
