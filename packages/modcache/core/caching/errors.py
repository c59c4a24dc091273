"""Exceptions raised by the cache.

Only API misuse raises. Environmental failures (unreadable files, corrupt
entries, full disks) are absorbed by the cache and surface as misses.
"""


class CacheError(Exception):
    """Base class for cache programming errors."""


class CacheConfigError(CacheError):
    """Cache configuration used incorrectly.

    Raised when the configuration is initialized twice, initialized after it
    was already read, or when the directory/compression level of a disabled
    configuration is requested.
    """
