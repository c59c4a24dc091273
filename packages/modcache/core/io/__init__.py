"""Filesystem abstraction layer for modcache.

Provides safe, testable, blocking filesystem operations.

Example:
    >>> from modcache.core.io import RealFileSystem, absolute_path
    >>> fs = RealFileSystem()
    >>> path = fs.join(absolute_path("/tmp"), "cache", "entry.bin")
    >>> fs.mkdirs(fs.join(absolute_path("/tmp"), "cache"))
    >>> fs.write_bytes(path, b"payload")
    >>> content = fs.read_bytes(path)
"""

from .impl_fake import FakeFileSystem
from .impl_real import RealFileSystem
from .models import AbsolutePath, WriteResult, absolute_path
from .protocols import FileSystem
from .utils import sanitize_path_component

__all__ = [
    # Path types and constructors
    "AbsolutePath",
    "absolute_path",
    # Result types
    "WriteResult",
    # Protocols
    "FileSystem",
    # Implementations
    "RealFileSystem",
    "FakeFileSystem",
    # Utilities
    "sanitize_path_component",
]
