from __future__ import annotations

import copy
import time
from typing import Any, Callable

from arttimeline.app.infra.cache.base import CacheEntry, CacheStore


class InMemoryCacheStore(CacheStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[Any, float]] = {}

    async def get(self, namespace: str, key: str) -> CacheEntry | None:
        item = self._entries.get((namespace, key))
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            self._entries.pop((namespace, key), None)
            return None
        return CacheEntry(value=copy.deepcopy(value))

    async def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._entries[(namespace, key)] = (copy.deepcopy(value), self._clock() + ttl_seconds)

    async def delete(self, namespace: str, key: str) -> None:
        self._entries.pop((namespace, key), None)

    def __len__(self) -> int:
        return len(self._entries)
