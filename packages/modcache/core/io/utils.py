"""Utility functions for filesystem operations."""

import re

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")
_UNSAFE_OR_DASH = re.compile(r"[^A-Za-z0-9._]")


def _percent_encode(match: re.Match[str]) -> str:
    return "".join(f"%{byte:02X}" for byte in match.group().encode("utf-8"))


def sanitize_path_component(component: str, escape_dash: bool = False) -> str:
    """
    Encode a string as a single filesystem path component.

    Every character outside ``[A-Za-z0-9._-]``, ``%`` included, is
    percent-encoded from its UTF-8 bytes, so distinct inputs always give
    distinct components. Target triples and compiler names are passed
    through here before they become cache directories.

    Args:
        component: String to encode
        escape_dash: Also encode ``-``, for fields joined with ``-`` as a separator

    Returns:
        Filesystem-safe string

    Example:
        >>> sanitize_path_component("x86_64-unknown-linux-gnu")
        'x86_64-unknown-linux-gnu'
        >>> sanitize_path_component("cranelift/0.41")
        'cranelift%2F0.41'
        >>> sanitize_path_component("1.0+local")
        '1.0%2Blocal'
    """
    pattern = _UNSAFE_OR_DASH if escape_dash else _UNSAFE
    encoded = pattern.sub(_percent_encode, component)
    # "." and ".." would step out of the cache layout; a lone "%" is never
    # produced by the encoding above
    if encoded in {"", ".", ".."}:
        return encoded.replace(".", "%2E") or "%"
    return encoded
