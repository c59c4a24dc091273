"""Module description consumed by the cache key derivation.

These models describe only what the code generator looks at: types,
imports, tables, memories, globals, exports, the start function, table
initializers, and the raw bytes of every defined function body. The parser
that produces them lives outside this package.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
import json
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modcache.core.caching.fingerprint import CacheHasher


class ValueType(str, Enum):
    """Value types understood by the code generator."""

    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"
    V128 = "v128"


class ExportKind(str, Enum):
    """Kind of entity an export refers to."""

    FUNCTION = "function"
    TABLE = "table"
    MEMORY = "memory"
    GLOBAL = "global"


class Signature(BaseModel):
    """Function signature."""

    model_config = ConfigDict(frozen=True)

    params: list[ValueType] = Field(default_factory=list)
    returns: list[ValueType] = Field(default_factory=list)


class Import(BaseModel):
    """An imported function: module/field name pair plus its signature index."""

    model_config = ConfigDict(frozen=True)

    module: str
    field: str
    signature: int = Field(ge=0)


class TablePlan(BaseModel):
    """Table declaration."""

    model_config = ConfigDict(frozen=True)

    minimum: int = Field(ge=0)
    maximum: int | None = Field(default=None, ge=0)


class MemoryPlan(BaseModel):
    """Linear memory declaration and the guard layout the compiler assumes."""

    model_config = ConfigDict(frozen=True)

    minimum: int = Field(ge=0, description="Minimum size in pages")
    maximum: int | None = Field(default=None, ge=0)
    shared: bool = False
    offset_guard_size: int = Field(default=0x8000_0000, ge=0)


class Global(BaseModel):
    """Global declaration with a constant initializer."""

    model_config = ConfigDict(frozen=True)

    value_type: ValueType
    mutable: bool = False
    initializer: int = 0


class Export(BaseModel):
    """Export entry (the export name is the mapping key in ``Module.exports``)."""

    model_config = ConfigDict(frozen=True)

    kind: ExportKind
    index: int = Field(ge=0)


class TableElements(BaseModel):
    """Table initializer segment."""

    model_config = ConfigDict(frozen=True)

    table_index: int = Field(ge=0)
    base: int | None = Field(default=None, description="Global index added to offset")
    offset: int = Field(default=0, ge=0)
    elements: list[int] = Field(default_factory=list)


class FunctionBody(BaseModel):
    """Raw bytes of one defined function plus its offset in the module binary.

    The offset is compile-relevant: source locations in the address maps are
    recorded relative to it.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes
    module_offset: int = Field(default=0, ge=0)


class Module(BaseModel):
    """Compile-relevant view of a translated module.

    ``name`` is display metadata only and never contributes to the cache key.
    """

    model_config = ConfigDict(frozen=True)

    signatures: list[Signature] = Field(default_factory=list)
    imported_funcs: list[Import] = Field(default_factory=list)
    functions: list[int] = Field(
        default_factory=list, description="Signature index of each defined function"
    )
    tables: list[TablePlan] = Field(default_factory=list)
    memories: list[MemoryPlan] = Field(default_factory=list)
    globals: list[Global] = Field(default_factory=list)
    exports: dict[str, Export] = Field(default_factory=dict)
    start_func: int | None = None
    table_elements: list[TableElements] = Field(default_factory=list)
    name: str | None = None

    def hash_for_cache(
        self,
        function_bodies: Sequence[FunctionBody] | Mapping[int, FunctionBody],
        hasher: CacheHasher,
    ) -> None:
        """Feed every compile-relevant byte of this module into ``hasher``.

        Module fields are written as canonical JSON (sorted keys, compact
        separators), so the insertion order of ``exports`` never matters.
        Function bodies follow in defined-function index order.

        Args:
            function_bodies: Bodies of the defined functions, as a sequence or
                a mapping keyed by defined-function index
            hasher: Destination hasher
        """
        fields = self.model_dump(mode="json", exclude={"name"})
        canonical = json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        hasher.update_str(canonical)

        if isinstance(function_bodies, Mapping):
            ordered = sorted(function_bodies.items())
        else:
            ordered = list(enumerate(function_bodies))

        hasher.update_int(len(ordered))
        for index, body in ordered:
            hasher.update_int(index)
            hasher.update_int(body.module_offset)
            hasher.update_bytes(body.data)
