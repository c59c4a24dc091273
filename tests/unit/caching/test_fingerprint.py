"""Tests for cache key derivation."""

from __future__ import annotations

import pytest

from modcache.core.caching import CacheHasher, CacheKey, derive_cache_key
from modcache.core.compilation import (
    Export,
    ExportKind,
    FunctionBody,
    Import,
    MemoryPlan,
    Module,
    Signature,
    ValueType,
)


class TestCacheHasher:
    """Tests for the framing hasher."""

    def test_length_prefix_separates_fields(self):
        """Test adjacent byte strings cannot run together."""
        first = CacheHasher()
        first.update_bytes(b"ab")
        first.update_bytes(b"c")

        second = CacheHasher()
        second.update_bytes(b"a")
        second.update_bytes(b"bc")

        assert first.digest() != second.digest()

    def test_digest_is_256_bits(self):
        """Test digest size."""
        hasher = CacheHasher()
        hasher.update_str("module")

        assert len(hasher.digest()) == 32

    def test_negative_ints_are_accepted(self):
        """Test signed integers hash without error and differ by sign."""
        positive = CacheHasher()
        positive.update_int(5)
        negative = CacheHasher()
        negative.update_int(-5)

        assert positive.digest() != negative.digest()

    @pytest.mark.parametrize("value", [0, -1, 127, 128, 2**63 - 1, 2**63, 2**64, -(2**70)])
    def test_ints_of_any_size_are_accepted(self, value: int):
        """Test integers beyond the 64-bit range hash without error."""
        hasher = CacheHasher()
        hasher.update_int(value)

        assert len(hasher.digest()) == 32

    def test_int_widths_do_not_collide(self):
        """Test values whose encodings share a prefix still hash differently."""
        digests = set()
        for value in (0, 255, 256, -1, 2**64, 2**64 + 1, -(2**64)):
            hasher = CacheHasher()
            hasher.update_int(value)
            digests.add(hasher.digest())

        assert len(digests) == 7


class TestDeterminism:
    """Tests that logically identical inputs produce identical keys."""

    def test_repeated_derivation_is_stable(self, module: Module, bodies: list[FunctionBody]):
        """Test the same inputs always give the same key."""
        assert derive_cache_key(module, bodies) == derive_cache_key(module, bodies)

    def test_export_insertion_order_does_not_matter(self, bodies: list[FunctionBody]):
        """Test dict insertion order of exports does not affect the key."""
        a = Module(
            functions=[0],
            exports={
                "main": Export(kind=ExportKind.FUNCTION, index=0),
                "mem": Export(kind=ExportKind.MEMORY, index=0),
            },
        )
        b = Module(
            functions=[0],
            exports={
                "mem": Export(kind=ExportKind.MEMORY, index=0),
                "main": Export(kind=ExportKind.FUNCTION, index=0),
            },
        )

        assert derive_cache_key(a, bodies) == derive_cache_key(b, bodies)

    def test_mapping_and_sequence_bodies_agree(self, module: Module, bodies: list[FunctionBody]):
        """Test bodies keyed by index hash like the equivalent sequence."""
        extra = FunctionBody(data=b"\x00\x0b", module_offset=0x40)
        as_list = [*bodies, extra]
        as_mapping = {1: extra, 0: bodies[0]}

        assert derive_cache_key(module, as_list) == derive_cache_key(module, as_mapping)

    def test_display_name_is_ignored(self, module: Module, bodies: list[FunctionBody]):
        """Test the module's display name is not compile-relevant."""
        renamed = module.model_copy(update={"name": "something-else"})

        assert derive_cache_key(module, bodies) == derive_cache_key(renamed, bodies)

    def test_known_digest_is_stable_across_processes(self):
        """Test the key of a fixed module never changes (guards the hashing scheme)."""
        module = Module(signatures=[Signature()], functions=[0])
        bodies = [FunctionBody(data=b"\x00\x0b")]

        first = derive_cache_key(module, bodies).hex()
        rebuilt = Module.model_validate_json(module.model_dump_json())

        assert derive_cache_key(rebuilt, bodies).hex() == first
        assert len(first) == 64


class TestSensitivity:
    """Tests that compile-relevant changes change the key."""

    def test_function_body_bytes_change_key(self, module: Module, bodies: list[FunctionBody]):
        """Test editing one byte of a body changes the key."""
        changed = [FunctionBody(data=b"\x00\x20\x01\x0b", module_offset=bodies[0].module_offset)]

        assert derive_cache_key(module, bodies) != derive_cache_key(module, changed)

    def test_function_body_offset_changes_key(self, module: Module, bodies: list[FunctionBody]):
        """Test moving a body within the module binary changes the key."""
        moved = [FunctionBody(data=bodies[0].data, module_offset=bodies[0].module_offset + 1)]

        assert derive_cache_key(module, bodies) != derive_cache_key(module, moved)

    def test_offsets_past_64_bits_derive_distinct_keys(self, module: Module):
        """Test very large body offsets are hashed rather than rejected."""
        low = [FunctionBody(data=b"\x00\x0b", module_offset=2**63 - 1)]
        high = [FunctionBody(data=b"\x00\x0b", module_offset=1 << 64)]

        assert derive_cache_key(module, low) != derive_cache_key(module, high)

    def test_large_mapping_indices_derive_distinct_keys(self, module: Module):
        """Test body indices beyond the 64-bit range still produce a key."""
        body = FunctionBody(data=b"\x00\x0b")

        near = derive_cache_key(module, {1 << 64: body})
        far = derive_cache_key(module, {1 << 65: body})

        assert near != far

    def test_body_order_changes_key(self, module: Module):
        """Test swapping two bodies changes the key."""
        first = FunctionBody(data=b"\x00\x0b")
        second = FunctionBody(data=b"\x00\x01\x0b")

        assert derive_cache_key(module, [first, second]) != derive_cache_key(
            module, [second, first]
        )

    def test_extra_empty_body_changes_key(self, module: Module, bodies: list[FunctionBody]):
        """Test appending a body changes the key."""
        assert derive_cache_key(module, bodies) != derive_cache_key(
            module, [*bodies, FunctionBody(data=b"")]
        )

    @pytest.mark.parametrize(
        "update",
        [
            {"signatures": [Signature(params=[ValueType.I64], returns=[ValueType.I32])]},
            {"imported_funcs": [Import(module="env", field="print", signature=0)]},
            {"memories": [MemoryPlan(minimum=2, maximum=16)]},
            {"exports": {"start": Export(kind=ExportKind.FUNCTION, index=0)}},
            {"start_func": 0},
        ],
        ids=["signature", "import", "memory", "exports", "start_func"],
    )
    def test_module_fields_change_key(
        self, module: Module, bodies: list[FunctionBody], update: dict
    ):
        """Test every compile-relevant module field feeds the key."""
        changed = module.model_copy(update=update)

        assert derive_cache_key(module, bodies) != derive_cache_key(changed, bodies)


class TestCacheKey:
    """Tests for CacheKey encoding."""

    def test_encoded_is_filesystem_safe(self):
        """Test the base64 form never contains path separators or padding."""
        key = CacheKey(digest=bytes(range(224, 256)))

        encoded = key.encoded()

        assert "/" not in encoded
        assert "+" not in encoded
        assert "=" not in encoded
        assert len(encoded) == 43

    def test_rejects_wrong_size(self):
        """Test only 256-bit digests are valid keys."""
        with pytest.raises(ValueError):
            CacheKey(digest=b"\x00" * 16)
