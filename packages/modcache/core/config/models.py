"""Settings models for cache configuration files."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class CacheSettings(BaseModel):
    """Cache settings as written in a config file.

    These are requests, not resolved values: the directory may not exist
    yet and may be relative. ``CacheConfig.resolve`` turns them into the
    frozen configuration.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = Field(default=False, description="Enable the module cache")
    directory: Path | None = Field(
        default=None, description="Cache root (platform user cache dir when omitted)"
    )
    compression_level: int | None = Field(
        default=None, description="zstd compression level (omit for the default level)"
    )
    remove_corrupt_entries: bool = Field(
        default=True, description="Delete entries that fail to decode"
    )


class AppConfig(BaseModel):
    """Top-level configuration file."""

    model_config = ConfigDict(extra="ignore")

    cache: CacheSettings = Field(default_factory=CacheSettings)
