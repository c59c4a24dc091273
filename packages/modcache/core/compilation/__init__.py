"""Compiler-facing models: the module description hashed into cache keys and
the compiled output bundle stored in the cache."""

from modcache.core.compilation.module import (
    Export,
    ExportKind,
    FunctionBody,
    Global,
    Import,
    MemoryPlan,
    Module,
    Signature,
    TableElements,
    TablePlan,
    ValueType,
)
from modcache.core.compilation.output import (
    CACHE_FORMAT_VERSION,
    CachedPayload,
    CompiledFunction,
    FunctionAddressMap,
    InstructionAddressMap,
    Relocation,
    RelocationKind,
    RelocationTargetKind,
    StackSlot,
    StackSlotKind,
    ValueLocKind,
    ValueLocRange,
)

__all__ = [
    # Module description
    "Export",
    "ExportKind",
    "FunctionBody",
    "Global",
    "Import",
    "MemoryPlan",
    "Module",
    "Signature",
    "TableElements",
    "TablePlan",
    "ValueType",
    # Compiled output
    "CACHE_FORMAT_VERSION",
    "CachedPayload",
    "CompiledFunction",
    "FunctionAddressMap",
    "InstructionAddressMap",
    "Relocation",
    "RelocationKind",
    "RelocationTargetKind",
    "StackSlot",
    "StackSlotKind",
    "ValueLocKind",
    "ValueLocRange",
]
