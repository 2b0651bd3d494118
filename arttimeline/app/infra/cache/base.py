# arttimeline/app/infra/cache/base.py
"""
Abstract base class for the response cache.
This interface allows swapping an in-memory map (tests, local dev)
for a networked store without touching callers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


# Namespaces share one store but keep independent keys and TTLs.
NAMESPACE_MET_SEARCH = "met_search"
NAMESPACE_MET_OBJECT = "met_object"
NAMESPACE_MET_OBJECT_RAW = "met_object_raw"
NAMESPACE_TIMELINE_PERIOD = "timeline_period"
NAMESPACE_OTP_RESEND = "otp_resend"
NAMESPACE_REVOKED_TOKEN = "revoked_token"


@dataclass(frozen=True)
class CacheEntry:
    """
    A cache hit. Wrapping the value lets a cached ``None`` (a remembered
    absence) be told apart from a miss.
    """
    value: Any


class CacheStore(ABC):
    """
    Abstract interface for async key-value caching with expiry.

    Implementations:
    - InMemoryCacheStore: process-local dict
    - SupabaseCacheStore: shared table in Postgres
    """

    @abstractmethod
    async def get(self, namespace: str, key: str) -> CacheEntry | None:
        """
        Look up a fresh entry.

        Args:
            namespace: Logical cache partition
            key: Entry key within the namespace

        Returns:
            The entry, or None on a miss or when the entry has expired
        """
        pass

    @abstractmethod
    async def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store a JSON-compatible value. Last writer wins.

        Args:
            namespace: Logical cache partition
            key: Entry key within the namespace
            value: Value to store, ``None`` included
            ttl_seconds: Freshness window for this entry
        """
        pass

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> None:
        pass
