"""Path type and write result shared by the filesystem implementations."""

from pathlib import Path
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field

# Paths handed to a FileSystem; implementations never resolve them against a cwd
AbsolutePath = NewType("AbsolutePath", Path)


def absolute_path(path: str | Path) -> AbsolutePath:
    """
    Wrap an absolute path without resolving it.

    Symlinks and ``..`` segments are left alone; ``FileSystem.canonicalize``
    is the only place paths are resolved.

    Raises:
        ValueError: If path is relative

    Example:
        >>> absolute_path("/var/cache/modcache")
        PosixPath('/var/cache/modcache')
    """
    candidate = Path(path)
    if not candidate.is_absolute():
        raise ValueError(f"Path must be absolute: {path}")
    return AbsolutePath(candidate)


class WriteResult(BaseModel):
    """Outcome of a completed ``write_bytes`` call."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Path the content was renamed into")
    bytes_written: int = Field(ge=0)
    duration_ms: float = Field(default=0.0, ge=0.0, description="Wall time including rename")
