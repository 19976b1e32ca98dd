"""Cache for listing query results with explicit invalidation.

Entries are grouped under a resource key such as :data:`INVOICE_LIST`.
Invalidating a key bumps its token, so every entry stored under the old
token is dropped and the next request queries the database again.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from flask import current_app

INVOICE_LIST = "invoice-list"
MAX_ENTRIES = 256


class _ListingCache:
    """Process-local store of query results keyed by resource and variant.

    At most ``max_entries`` values are kept; the oldest is evicted first.
    """

    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        self.max_entries = max_entries
        self._entries: Dict[Tuple[str, Hashable], Any] = {}
        self._tokens: Dict[str, int] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def token(self, key: str) -> int:
        with self._lock:
            return self._tokens.get(key, 0)

    # ------------------------------------------------------------------
    def get(self, key: str, variant: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get((key, variant))

    # ------------------------------------------------------------------
    def set(self, key: str, variant: Hashable, value: Any, token: int) -> None:
        with self._lock:
            # A load that started before an invalidation must not be stored.
            if self._tokens.get(key, 0) != token:
                return
            self._entries.pop((key, variant), None)
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[(key, variant)] = value

    # ------------------------------------------------------------------
    def invalidate(self, key: str) -> None:
        with self._lock:
            self._tokens[key] = self._tokens.get(key, 0) + 1
            for entry_key in [k for k in self._entries if k[0] == key]:
                del self._entries[entry_key]


# ----------------------------------------------------------------------
def _get_cache() -> _ListingCache:
    app = current_app._get_current_object()
    cache = app.extensions.get("listing_cache")
    if cache is None:
        cache = app.extensions["listing_cache"] = _ListingCache()
    return cache


def cached(key: str, variant: Hashable, load: Callable[[], Any]) -> Any:
    """Return the cached value for ``(key, variant)`` or load and store it."""

    cache = _get_cache()
    value = cache.get(key, variant)
    if value is not None:
        return value
    token = cache.token(key)
    value = load()
    cache.set(key, variant, value, token)
    return value


def invalidate(key: str) -> None:
    """Mark every cached value stored under ``key`` as stale."""

    current_app.logger.debug("Invalidating cached results for %s", key)
    _get_cache().invalidate(key)
