"""The blocking filesystem interface the cache is written against."""

from typing import Protocol

from .models import AbsolutePath, WriteResult


class FileSystem(Protocol):
    """
    Everything the cache needs from a filesystem.

    ``RealFileSystem`` backs it with the local disk; ``FakeFileSystem`` keeps
    files in memory and records each call. Failures surface as ``OSError``
    subclasses so callers can treat both implementations alike.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """
        Append ``parts`` to ``base`` without touching the disk.

        Raises:
            ValueError: If the joined path would leave ``base``
        """
        ...

    def exists(self, path: AbsolutePath) -> bool:
        """True for an existing file or directory."""
        ...

    def is_file(self, path: AbsolutePath) -> bool:
        ...

    def is_dir(self, path: AbsolutePath) -> bool:
        ...

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """
        Return the whole file.

        Raises:
            FileNotFoundError: If nothing exists at ``path``
            OSError: If the file cannot be read
        """
        ...

    def write_bytes(self, path: AbsolutePath, content: bytes) -> WriteResult:
        """
        Replace the file at ``path`` with ``content`` in one step.

        A concurrent reader sees either the old file or the new one, never a
        prefix. The parent directory must already exist.

        Raises:
            FileNotFoundError: If the parent directory is missing
            OSError: If the file cannot be written
        """
        ...

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """
        Create ``path`` along with any missing ancestors.

        Raises:
            FileExistsError: If ``path`` exists and ``exist_ok`` is False
            OSError: If a directory cannot be created
        """
        ...

    def canonicalize(self, path: AbsolutePath) -> AbsolutePath:
        """
        Absolute form of an existing path with symlinks and ``..`` resolved.

        Raises:
            FileNotFoundError: If nothing exists at ``path``
        """
        ...

    def listdir(self, path: AbsolutePath) -> list[str]:
        """Sorted names of the entries directly under ``path``."""
        ...

    def remove(self, path: AbsolutePath) -> None:
        """
        Delete the file at ``path``.

        Raises:
            FileNotFoundError: If nothing exists at ``path``
        """
        ...
