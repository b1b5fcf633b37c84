"""
Response Cache
==============

Time-bounded memoization of (role, prompt) → (response, provider label).

Keys combine the role, a whitespace-collapsed prefix of the prompt and a
SHA-256 digest of the whole normalised prompt, so key size stays bounded no
matter how long the prompt is. Expiry is checked on read; there is no sweeper.
A hit reports the stored provider label with ``CACHE_SUFFIX`` appended.

The cache is the only object shared across concurrent pipeline runs and is
guarded by a plain ``threading.Lock``.
"""

from __future__ import annotations

import hashlib
import re
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

__all__ = [
    "CACHE_SUFFIX",
    "CacheHit",
    "NullCache",
    "ResponseCache",
    "ResultCache",
    "make_cache_key",
]

CACHE_SUFFIX = " (cache)"

_WHITESPACE = re.compile(r"\s+")


def _normalize(prompt: str) -> str:
    return _WHITESPACE.sub(" ", prompt).strip()


def make_cache_key(role: str | None, prompt: str, prefix_chars: int = 160) -> str:
    """Pure key derivation: role, readable prefix, digest of the full prompt."""
    normalized = _normalize(prompt)
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:32]
    return f"{role or '-'}|{normalized[:prefix_chars]}|{digest}"


@dataclass(frozen=True, slots=True)
class CacheHit:
    """A fresh cached response."""

    response: str
    provider: str
    created_at: float


@dataclass(slots=True)
class _CacheEntry:
    response: str
    provider: str
    created_at: float


class ResponseCache(Protocol):
    """Capability the cascade executor depends on."""

    def get(self, role: str | None, prompt: str) -> CacheHit | None: ...

    def put(self, role: str | None, prompt: str, response: str, provider: str) -> None: ...


class ResultCache:
    """
    TTL cache for cascade responses.

    Args:
        ttl_s: Freshness window; entries older than this are never returned.
        prefix_chars: Length of the readable prompt prefix kept in keys.
        max_entries: Oldest entry is dropped when full.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        ttl_s: float = 300.0,
        prefix_chars: int = 160,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._ttl = ttl_s
        self._prefix_chars = prefix_chars
        self._max_entries = max_entries
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def get(self, role: str | None, prompt: str) -> CacheHit | None:
        key = make_cache_key(role, prompt, self._prefix_chars)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if now - entry.created_at >= self._ttl:
                del self._entries[key]
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return CacheHit(
                response=entry.response,
                provider=entry.provider + CACHE_SUFFIX,
                created_at=entry.created_at,
            )

    def put(self, role: str | None, prompt: str, response: str, provider: str) -> None:
        key = make_cache_key(role, prompt, self._prefix_chars)
        entry = _CacheEntry(response=response, provider=provider, created_at=self._clock())
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    @property
    def size(self) -> int:
        return len(self._entries)


class NullCache:
    """Cache that never stores anything."""

    def get(self, role: str | None, prompt: str) -> CacheHit | None:
        return None

    def put(self, role: str | None, prompt: str, response: str, provider: str) -> None:
        return None
