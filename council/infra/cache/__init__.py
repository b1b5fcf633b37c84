"""
Cache Module

Provides the in-process result cache shared by cascade executors.
"""

from .response_cache import (
    CACHE_SUFFIX,
    CacheHit,
    NullCache,
    ResponseCache,
    ResultCache,
    make_cache_key,
)

__all__ = [
    "CACHE_SUFFIX",
    "CacheHit",
    "NullCache",
    "ResponseCache",
    "ResultCache",
    "make_cache_key",
]
