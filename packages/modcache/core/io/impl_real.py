"""Real filesystem implementation.

Provides atomic writes via temp file + os.replace().
"""

import os
from pathlib import Path
from tempfile import NamedTemporaryFile
import time

from .models import AbsolutePath, WriteResult


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Mode of a file created by open(); NamedTemporaryFile always uses 0600
FILE_MODE = 0o666 & ~_current_umask()


class RealFileSystem:
    """
    Real filesystem implementation backed by the local disk.

    Provides atomic writes via temp file + os.replace(), so concurrent
    writers to the same path race harmlessly (last rename wins).
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (no I/O beyond normalization)."""
        result = Path(os.path.normpath(Path(base).joinpath(*parts)))

        # Security: Ensure result is still under base
        base_norm = Path(os.path.normpath(base))
        try:
            result.relative_to(base_norm)
        except ValueError as e:
            raise ValueError(f"Path traversal detected: {result} escapes {base}") from e

        return AbsolutePath(result)

    def exists(self, path: AbsolutePath) -> bool:
        """Check existence."""
        return Path(path).exists()

    def is_file(self, path: AbsolutePath) -> bool:
        """Check if file."""
        return Path(path).is_file()

    def is_dir(self, path: AbsolutePath) -> bool:
        """Check if directory."""
        return Path(path).is_dir()

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read binary file."""
        return Path(path).read_bytes()

    def write_bytes(self, path: AbsolutePath, content: bytes) -> WriteResult:
        """Atomically write binary file."""
        start = time.perf_counter()
        path_obj = Path(path)

        # Temp file in the same directory so os.replace stays on one filesystem.
        # Raises FileNotFoundError when the parent is missing.
        tmp = NamedTemporaryFile(
            mode="wb",
            dir=path_obj.parent,
            prefix=f".{path_obj.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = tmp.name

        try:
            with tmp:
                tmp.write(content)
            os.chmod(tmp_path, FILE_MODE)
            os.replace(tmp_path, path_obj)
        except BaseException:
            # Clean up temp on failure
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise

        duration = (time.perf_counter() - start) * 1000

        return WriteResult(
            path=str(path),
            bytes_written=len(content),
            duration_ms=duration,
        )

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and parents."""
        os.makedirs(path, exist_ok=exist_ok)

    def canonicalize(self, path: AbsolutePath) -> AbsolutePath:
        """Resolve symlinks and relative segments of an existing path."""
        return AbsolutePath(Path(path).resolve(strict=True))

    def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory contents."""
        return sorted(os.listdir(path))

    def remove(self, path: AbsolutePath) -> None:
        """Remove file."""
        os.unlink(path)
