"""Shared pytest fixtures for modcache tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from modcache.core.caching import CacheConfig, CompilerIdentity
from modcache.core.compilation import (
    CachedPayload,
    CompiledFunction,
    Export,
    ExportKind,
    FunctionAddressMap,
    FunctionBody,
    Global,
    InstructionAddressMap,
    MemoryPlan,
    Module,
    Relocation,
    RelocationKind,
    RelocationTargetKind,
    Signature,
    StackSlot,
    StackSlotKind,
    TablePlan,
    ValueLocKind,
    ValueLocRange,
    ValueType,
)
from modcache.core.io import FakeFileSystem

TARGET = "x86_64-unknown-linux-gnu"

# ============================================================================
# Module Fixtures
# ============================================================================


@pytest.fixture
def module() -> Module:
    """Small module with one defined function, a memory and two exports."""
    return Module(
        signatures=[Signature(params=[ValueType.I32], returns=[ValueType.I32])],
        functions=[0],
        tables=[TablePlan(minimum=1)],
        memories=[MemoryPlan(minimum=1, maximum=16)],
        globals=[Global(value_type=ValueType.I32, mutable=True, initializer=42)],
        exports={
            "main": Export(kind=ExportKind.FUNCTION, index=0),
            "memory": Export(kind=ExportKind.MEMORY, index=0),
        },
        name="sample",
    )


@pytest.fixture
def bodies() -> list[FunctionBody]:
    """One trivial function body: no locals, ``local.get 0``, ``end``."""
    return [FunctionBody(data=b"\x00\x20\x00\x0b", module_offset=0x20)]


# ============================================================================
# Payload Fixtures
# ============================================================================


@pytest.fixture
def payload() -> CachedPayload:
    """Compiled output for the sample module (one function)."""
    return CachedPayload(
        compilation=[
            CompiledFunction(
                body=b"\x55\x48\x89\xe5\x89\xf8\x5d\xc3\x00\xff",
                jump_table_offsets={0: 16},
            )
        ],
        relocations=[
            [
                Relocation(
                    kind=RelocationKind.X86_CALL_PC_REL4,
                    target=RelocationTargetKind.LIB_CALL,
                    target_name="FloorF32",
                    offset=4,
                    addend=-4,
                )
            ]
        ],
        address_transforms=[
            FunctionAddressMap(
                instructions=[InstructionAddressMap(srcloc=0x21, code_offset=0, code_len=8)],
                start_srcloc=0x20,
                end_srcloc=0x24,
                body_offset=0,
                body_len=10,
            )
        ],
        value_ranges=[
            {0: [ValueLocRange(kind=ValueLocKind.REG, location=7, start=0, end=8)]},
        ],
        stack_slots=[[StackSlot(kind=StackSlotKind.SPILL, size=8, offset=-16)]],
    )


@pytest.fixture
def compiler() -> CompilerIdentity:
    """Release-build compiler identity."""
    return CompilerIdentity(name="ref-compiler", version="1.0.0")


# ============================================================================
# Filesystem / Config Fixtures
# ============================================================================


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """Provide fresh FakeFileSystem instance."""
    return FakeFileSystem()


@pytest.fixture
def fake_config(fake_fs: FakeFileSystem) -> CacheConfig:
    """Enabled config rooted at /cache on the fake filesystem."""
    config = CacheConfig.resolve(True, "/cache", fs=fake_fs)
    fake_fs.operations.clear()
    return config


@pytest.fixture
def disk_config(tmp_path: Path) -> CacheConfig:
    """Enabled config rooted in a temporary directory on disk."""
    return CacheConfig.resolve(True, tmp_path / "cache")


@pytest.fixture(autouse=True)
def _clear_modcache_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep MODCACHE_* variables from the outer environment out of tests."""
    for name in ("MODCACHE_ENABLED", "MODCACHE_DIR", "MODCACHE_COMPRESSION_LEVEL"):
        monkeypatch.delenv(name, raising=False)
