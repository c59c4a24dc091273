"""In-memory filesystem for fast, isolated testing.

Simulates filesystem operations without disk I/O and records every call,
so tests can assert that a code path never touched the filesystem.
"""

from pathlib import Path, PurePosixPath

from .models import AbsolutePath, WriteResult


class FakeFileSystem:
    """
    In-memory filesystem for testing.

    Every method except ``join`` appends ``(operation, path)`` to
    ``operations``. Not thread-safe (use per-test instance).
    """

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}  # Root always exists
        self.operations: list[tuple[str, str]] = []

    def _record(self, operation: str, path: AbsolutePath | Path) -> str:
        path_str = str(PurePosixPath(path))
        self.operations.append((operation, path_str))
        return path_str

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (no I/O)."""
        result = Path(base).joinpath(*parts)

        # Normalize to absolute
        if not result.is_absolute():
            result = Path("/") / result

        return AbsolutePath(result)

    def exists(self, path: AbsolutePath) -> bool:
        """Check existence."""
        path_str = self._record("exists", path)
        return path_str in self._files or path_str in self._dirs

    def is_file(self, path: AbsolutePath) -> bool:
        """Check if file."""
        return self._record("is_file", path) in self._files

    def is_dir(self, path: AbsolutePath) -> bool:
        """Check if directory."""
        return self._record("is_dir", path) in self._dirs

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read bytes."""
        path_str = self._record("read_bytes", path)
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[path_str]

    def write_bytes(self, path: AbsolutePath, content: bytes) -> WriteResult:
        """Write bytes; the parent directory must already exist."""
        path_str = self._record("write_bytes", path)

        parent = str(PurePosixPath(path_str).parent)
        if parent not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {parent}")
        if path_str in self._dirs:
            raise IsADirectoryError(f"Is a directory: {path}")

        self._files[path_str] = bytes(content)

        return WriteResult(
            path=path_str,
            bytes_written=len(content),
            duration_ms=0.0,
        )

    def _ensure_parents(self, path: PurePosixPath) -> None:
        """Recursively create parent directories."""
        parts = path.parts
        for i in range(1, len(parts) + 1):
            dir_path = str(PurePosixPath(*parts[:i]))
            if dir_path in self._files:
                raise NotADirectoryError(f"Not a directory: {dir_path}")
            self._dirs.add(dir_path)

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory."""
        path_str = self._record("mkdirs", path)
        if not exist_ok and path_str in self._dirs:
            raise FileExistsError(f"Directory exists: {path}")
        self._ensure_parents(PurePosixPath(path_str))

    def canonicalize(self, path: AbsolutePath) -> AbsolutePath:
        """Return the normalized path of an existing file or directory."""
        path_str = self._record("canonicalize", path)
        if path_str not in self._files and path_str not in self._dirs:
            raise FileNotFoundError(f"Path not found: {path}")
        return AbsolutePath(Path(path_str))

    def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory."""
        path_str = self._record("listdir", path)
        if path_str not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {path}")

        # Find immediate children
        children = []
        for entry in [*self._files.keys(), *self._dirs]:
            entry_path = PurePosixPath(entry)
            if entry != path_str and entry_path.parent == PurePosixPath(path_str):
                children.append(entry_path.name)

        return sorted(set(children))

    def remove(self, path: AbsolutePath) -> None:
        """Remove file."""
        path_str = self._record("remove", path)
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        del self._files[path_str]
