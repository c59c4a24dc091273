"""Tests for the cached_compile wrapper.

Tests the load -> compile -> store protocol around ModuleCacheEntry.
"""

from __future__ import annotations

import pytest

from modcache.core.caching import CacheConfig, CompilerIdentity, ModuleCacheEntry, cached_compile
from modcache.core.compilation import CachedPayload, FunctionBody, Module
from modcache.core.io import FakeFileSystem

TARGET = "x86_64-unknown-linux-gnu"


@pytest.fixture
def entry(
    module: Module,
    bodies: list[FunctionBody],
    compiler: CompilerIdentity,
    fake_config: CacheConfig,
    fake_fs: FakeFileSystem,
) -> ModuleCacheEntry:
    """Enabled entry on the fake filesystem."""
    return ModuleCacheEntry(module, bodies, TARGET, compiler, False, fake_config, fake_fs)


class CountingCompiler:
    """Compile callable that counts invocations."""

    def __init__(self, payload: CachedPayload) -> None:
        self.payload = payload
        self.calls = 0

    def __call__(self) -> CachedPayload:
        self.calls += 1
        return self.payload


class TestCacheHit:
    """Tests for cache hit behavior."""

    def test_second_call_skips_compile(self, entry: ModuleCacheEntry, payload: CachedPayload):
        """Test the second compilation of the same module is served from cache."""
        compile = CountingCompiler(payload)

        first = cached_compile(entry, compile)
        second = cached_compile(entry, compile)

        assert first == payload
        assert second == payload
        assert compile.calls == 1

    def test_fresh_entry_hits(
        self,
        entry: ModuleCacheEntry,
        module: Module,
        bodies: list[FunctionBody],
        compiler: CompilerIdentity,
        fake_config: CacheConfig,
        fake_fs: FakeFileSystem,
        payload: CachedPayload,
    ):
        """Test a new entry for identical inputs sees the stored output."""
        cached_compile(entry, CountingCompiler(payload))
        again = ModuleCacheEntry(module, bodies, TARGET, compiler, False, fake_config, fake_fs)
        compile = CountingCompiler(payload)

        assert cached_compile(again, compile) == payload
        assert compile.calls == 0


class TestCacheMiss:
    """Tests for cache miss and bypass behavior."""

    def test_miss_compiles_and_stores(
        self, entry: ModuleCacheEntry, payload: CachedPayload, fake_fs: FakeFileSystem
    ):
        """Test a miss runs the compiler and writes the entry."""
        compile = CountingCompiler(payload)

        cached_compile(entry, compile)

        assert compile.calls == 1
        assert fake_fs.is_file(entry.path)

    def test_force_recompiles(self, entry: ModuleCacheEntry, payload: CachedPayload):
        """Test force=True ignores the cached output."""
        compile = CountingCompiler(payload)
        cached_compile(entry, compile)

        cached_compile(entry, compile, force=True)

        assert compile.calls == 2

    def test_disabled_always_compiles(
        self,
        module: Module,
        bodies: list[FunctionBody],
        compiler: CompilerIdentity,
        payload: CachedPayload,
        fake_fs: FakeFileSystem,
    ):
        """Test a disabled cache compiles every time and never touches disk."""
        entry = ModuleCacheEntry(
            module, bodies, TARGET, compiler, False, CacheConfig.disabled(), fake_fs
        )
        compile = CountingCompiler(payload)

        cached_compile(entry, compile)
        cached_compile(entry, compile)

        assert compile.calls == 2
        assert fake_fs.operations == []


class TestCompileErrors:
    """Tests for errors raised by the compiler."""

    def test_compile_error_propagates_and_nothing_is_stored(
        self, entry: ModuleCacheEntry, fake_fs: FakeFileSystem
    ):
        """Test compiler exceptions reach the caller and leave no entry behind."""

        def failing() -> CachedPayload:
            raise RuntimeError("codegen failed")

        with pytest.raises(RuntimeError, match="codegen failed"):
            cached_compile(entry, failing)

        assert [op for op, _ in fake_fs.operations] == ["read_bytes"]
