# This file holds the gateway response cache for list and detail reads.
# It exists so repeated reads of an unchanged view do not hit the API again within the TTL.
# Mutations invalidate entries explicitly by resource type (and optionally id) instead of by tag matching.
# Gateway calls run in worker threads, so every access is guarded by a lock.

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from typing import Any


class ResponseCache:
    def __init__(
        self,
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[tuple[str, str, Hashable], tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, resource: str, kind: str, key: Hashable) -> Any | None:
        cache_key = (resource, kind, key)
        with self._lock:
            cached = self._store.get(cache_key)
            if cached is None:
                return None
            expires_at, value = cached
            if self._clock() > expires_at:
                self._store.pop(cache_key, None)
                return None
            return value

    def set(self, resource: str, kind: str, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._store[(resource, kind, key)] = (self._clock() + self.ttl_seconds, value)

    def invalidate(self, resource: str, resource_id: str | None = None) -> int:
        """Drop every list entry for `resource`, plus the detail entry for `resource_id`."""

        with self._lock:
            doomed = [
                key
                for key in self._store
                if key[0] == resource
                and (key[1] == "list" or (resource_id is not None and key[2] == resource_id))
            ]
            for key in doomed:
                del self._store[key]
        return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
