"""Compiled output bundle stored in the module cache.

``CachedPayload`` is everything a later stage needs to skip recompiling a
module: machine code, relocations, address maps, value-location ranges and
stack-frame layout, one entry per defined function in each list.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Bump whenever the shape of CachedPayload changes; older entries then fail
# validation and load as misses.
CACHE_FORMAT_VERSION = 1

_PAYLOAD_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    ser_json_bytes="base64",
    val_json_bytes="base64",
)


class CompiledFunction(BaseModel):
    """Machine code for one function."""

    model_config = _PAYLOAD_CONFIG

    body: bytes
    jump_table_offsets: dict[int, int] = Field(
        default_factory=dict, description="Jump table index -> code offset"
    )


class RelocationKind(str, Enum):
    """Relocation encodings emitted by the code generator."""

    ABS4 = "abs4"
    ABS8 = "abs8"
    X86_PC_REL4 = "x86_pc_rel4"
    X86_CALL_PC_REL4 = "x86_call_pc_rel4"
    X86_CALL_PLT_REL4 = "x86_call_plt_rel4"
    X86_GOT_PC_REL4 = "x86_got_pc_rel4"
    ARM32_CALL = "arm32_call"
    ARM64_CALL = "arm64_call"


class RelocationTargetKind(str, Enum):
    """What a relocation points at."""

    USER_FUNC = "user_func"
    LIB_CALL = "lib_call"
    MEMORY32_GROW = "memory32_grow"
    MEMORY32_SIZE = "memory32_size"
    JUMP_TABLE = "jump_table"


class Relocation(BaseModel):
    """A single relocation inside a function body."""

    model_config = _PAYLOAD_CONFIG

    kind: RelocationKind
    target: RelocationTargetKind
    target_index: int = Field(default=0, ge=0)
    target_name: str | None = None
    offset: int = Field(ge=0)
    addend: int = 0


class InstructionAddressMap(BaseModel):
    """Maps one generated instruction range back to a source location."""

    model_config = _PAYLOAD_CONFIG

    srcloc: int
    code_offset: int = Field(ge=0)
    code_len: int = Field(ge=0)


class FunctionAddressMap(BaseModel):
    """Address map for one function."""

    model_config = _PAYLOAD_CONFIG

    instructions: list[InstructionAddressMap] = Field(default_factory=list)
    start_srcloc: int = 0
    end_srcloc: int = 0
    body_offset: int = Field(default=0, ge=0)
    body_len: int = Field(default=0, ge=0)


class ValueLocKind(str, Enum):
    """Where a value lives."""

    REG = "reg"
    STACK = "stack"
    UNASSIGNED = "unassigned"


class ValueLocRange(BaseModel):
    """Location of a value label over a code range."""

    model_config = _PAYLOAD_CONFIG

    kind: ValueLocKind
    location: int = 0
    start: int = Field(ge=0)
    end: int = Field(ge=0)


class StackSlotKind(str, Enum):
    """Stack slot kinds."""

    SPILL = "spill"
    EXPLICIT = "explicit"
    INCOMING_ARG = "incoming_arg"
    OUTGOING_ARG = "outgoing_arg"
    EMERGENCY = "emergency"


class StackSlot(BaseModel):
    """Stack-frame slot layout."""

    model_config = _PAYLOAD_CONFIG

    kind: StackSlotKind
    size: int = Field(ge=0)
    offset: int | None = None


class CachedPayload(BaseModel):
    """Compiled module output, stored and loaded by ``ModuleCacheEntry``.

    Per-function lists are indexed by defined-function index and must all
    have the same length. ``value_ranges`` may be empty when debug info was
    not requested.
    """

    model_config = _PAYLOAD_CONFIG

    format_version: Literal[1] = CACHE_FORMAT_VERSION
    compilation: list[CompiledFunction] = Field(default_factory=list)
    relocations: list[list[Relocation]] = Field(default_factory=list)
    address_transforms: list[FunctionAddressMap] = Field(default_factory=list)
    value_ranges: list[dict[int, list[ValueLocRange]]] = Field(default_factory=list)
    stack_slots: list[list[StackSlot]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_function_counts(self) -> Self:
        count = len(self.compilation)
        lengths = {
            "relocations": len(self.relocations),
            "address_transforms": len(self.address_transforms),
            "stack_slots": len(self.stack_slots),
        }
        if self.value_ranges:
            lengths["value_ranges"] = len(self.value_ranges)
        mismatched = {name: n for name, n in lengths.items() if n != count}
        if mismatched:
            raise ValueError(
                f"Per-function lists must match compilation length {count}: {mismatched}"
            )
        return self

    @property
    def function_count(self) -> int:
        """Number of compiled functions."""
        return len(self.compilation)
