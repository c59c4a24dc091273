"""Serialization and compression of cached payloads.

Entries are zstd frames wrapping the payload's pydantic JSON. The JSON
carries ``format_version`` and forbids unknown fields, so an entry written
by an incompatible version fails validation instead of loading garbage.
"""

from pydantic import ValidationError
import zstandard

from modcache.core.compilation.output import CachedPayload

from .config import DEFAULT_COMPRESSION_LEVEL

ZSTD_DEFAULT_LEVEL = 3

# Largest payload a single entry may decompress to
MAX_DECOMPRESSED_SIZE = 1 << 30


class OversizedFrameError(ValueError):
    """A zstd frame declares more output than an entry may hold."""


COMPRESS_ERRORS: tuple[type[Exception], ...] = (zstandard.ZstdError,)

# Errors that mean "this entry cannot be decoded"
DECOMPRESS_ERRORS: tuple[type[Exception], ...] = (zstandard.ZstdError, OversizedFrameError)
DESERIALIZE_ERRORS: tuple[type[Exception], ...] = (ValidationError, ValueError)


def serialize_payload(payload: CachedPayload) -> bytes:
    """Serialize a payload to JSON bytes."""
    return payload.model_dump_json().encode("utf-8")


def deserialize_payload(data: bytes) -> CachedPayload:
    """
    Parse and validate JSON bytes into a payload.

    Raises:
        ValidationError: On malformed JSON, wrong shape, or format version mismatch
    """
    return CachedPayload.model_validate_json(data)


def compress(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Compress bytes into a single zstd frame (level 0 = default level)."""
    compressor = zstandard.ZstdCompressor(level=level or ZSTD_DEFAULT_LEVEL)
    return compressor.compress(data)


def decompress(data: bytes, max_size: int = MAX_DECOMPRESSED_SIZE) -> bytes:
    """
    Decompress a zstd frame of at most ``max_size`` output bytes.

    The size a frame header declares is checked before anything is
    allocated; frames without one are decoded into at most ``max_size``
    bytes.

    Raises:
        zstandard.ZstdError: If the data is not a complete zstd frame
        OversizedFrameError: If the header declares more than ``max_size`` bytes
    """
    declared = zstandard.frame_content_size(data)
    if declared > max_size:
        raise OversizedFrameError(
            f"Frame declares {declared} bytes, more than the {max_size} byte limit"
        )
    return zstandard.ZstdDecompressor().decompress(data, max_output_size=max_size)


def encode_payload(payload: CachedPayload, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Serialize and compress a payload."""
    return compress(serialize_payload(payload), level)


def decode_payload(data: bytes) -> CachedPayload:
    """Decompress and deserialize an entry."""
    return deserialize_payload(decompress(data))
