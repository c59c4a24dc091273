"""Command-line interface for modcache.

Inspects the cache configuration and where a module's compiled output
would be cached.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.console import Console
from rich.markup import escape

from modcache.core.caching import (
    CacheConfig,
    CacheConfigCell,
    CompilerIdentity,
    ModuleCacheEntry,
    compiler_build_stamp,
)
from modcache.core.compilation import FunctionBody, Module
from modcache.core.config import initialize_from_settings, load_cache_settings, load_config
from modcache.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)


class ManifestFunctionBody(BaseModel):
    """Function body in a manifest file (hex-encoded bytes)."""

    model_config = ConfigDict(extra="forbid")

    data: str = Field(description="Hex-encoded function body bytes")
    module_offset: int = Field(default=0, ge=0)

    @field_validator("data")
    @classmethod
    def _check_hex(cls, value: str) -> str:
        bytes.fromhex(value)
        return value

    def to_body(self) -> FunctionBody:
        return FunctionBody(data=bytes.fromhex(self.data), module_offset=self.module_offset)


class ModuleManifest(BaseModel):
    """Module description file accepted by ``modcache inspect``."""

    model_config = ConfigDict(extra="forbid")

    module: Module = Field(default_factory=Module)
    function_bodies: list[ManifestFunctionBody] = Field(default_factory=list)

    def bodies(self) -> list[FunctionBody]:
        return [body.to_body() for body in self.function_bodies]


def load_manifest(path: str | Path) -> ModuleManifest:
    """Load and validate a module manifest (.json, .yaml, or .yml)."""
    return ModuleManifest.model_validate(load_config(path))


def _resolve_config(config_path: Path | None) -> CacheConfig:
    settings = load_cache_settings(config_path)
    # Private cell: the CLI resolves exactly one configuration per run
    return initialize_from_settings(settings, CacheConfigCell())


def _emit(label: str, value: object) -> None:
    console.print(f"{label}: {value}", soft_wrap=True, highlight=False, markup=False)


def cmd_config(args: argparse.Namespace) -> int:
    """Print the resolved cache configuration."""
    config = _resolve_config(args.config)
    _emit("enabled", str(config.enabled).lower())
    if config.enabled:
        _emit("directory", config.directory())
        _emit("compression_level", config.compression_level())
        _emit("remove_corrupt_entries", str(config.remove_corrupt_entries).lower())
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Print the cache key, entry path and entry status for a module manifest."""
    manifest = load_manifest(args.manifest)
    config = _resolve_config(args.config)

    build_stamp = args.build_stamp
    if build_stamp is None and args.dev_build:
        build_stamp = compiler_build_stamp(args.compiler_executable)
    compiler = CompilerIdentity(
        name=args.compiler_name,
        version=args.compiler_version,
        build_stamp=build_stamp,
    )

    # Inspection never deletes entries
    config = config.model_copy(update={"remove_corrupt_entries": False})
    entry = ModuleCacheEntry(
        manifest.module,
        manifest.bodies(),
        args.target,
        compiler,
        args.debug_info,
        config=config,
    )

    if entry.key is None or entry.path is None:
        _emit("status", "disabled")
        return 0

    _emit("key", entry.key.hex())
    _emit("path", entry.path)
    payload = entry.load()
    if payload is None:
        _emit("status", "miss")
    else:
        _emit("status", f"hit ({payload.function_count} functions)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="modcache",
        description="Inspect the compiled-module cache",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit structured JSON logs")

    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser("config", help="Show the resolved cache configuration")
    config_parser.add_argument("--config", type=Path, default=None, help="Config file path")
    config_parser.set_defaults(func=cmd_config)

    inspect_parser = subparsers.add_parser(
        "inspect", help="Show the cache key and entry path for a module manifest"
    )
    inspect_parser.add_argument("manifest", type=Path, help="Module manifest (.json/.yaml)")
    inspect_parser.add_argument("--target", required=True, help="Target triple")
    inspect_parser.add_argument("--compiler-name", required=True, help="Compiler name")
    inspect_parser.add_argument("--compiler-version", required=True, help="Compiler version")
    stamp_group = inspect_parser.add_mutually_exclusive_group()
    stamp_group.add_argument("--build-stamp", default=None, help="Explicit build stamp")
    stamp_group.add_argument(
        "--dev-build",
        action="store_true",
        help="Stamp the compiler identity with the executable's mtime",
    )
    inspect_parser.add_argument(
        "--compiler-executable",
        default=None,
        help="Executable whose mtime is the dev build stamp (default: python)",
    )
    inspect_parser.add_argument("--debug-info", action="store_true", help="Debug-info build")
    inspect_parser.add_argument("--config", type=Path, default=None, help="Config file path")
    inspect_parser.set_defaults(func=cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(level=args.log_level, structured=args.log_json)
    except ValueError as e:
        parser.error(str(e))

    try:
        return int(args.func(args))
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}", soft_wrap=True, highlight=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
