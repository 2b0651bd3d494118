from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import httpx
from postgrest.exceptions import APIError
from starlette.concurrency import run_in_threadpool
from supabase import Client

from arttimeline.app.infra.cache.base import CacheEntry, CacheStore
from arttimeline.app.infra.db.rows import now_utc, parse_datetime

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (ConnectionError, TimeoutError, httpx.HTTPError, APIError)


class SupabaseCacheStore(CacheStore):
    """
    Cache rows in the ``api_cache`` table, shared by every API instance.
    Backend failures degrade to misses; the cache is never a hard dependency.
    """

    TABLE_NAME = "api_cache"

    def __init__(self, client: Client):
        self._client = client
        logger.info("SupabaseCacheStore initialized")

    async def get(self, namespace: str, key: str) -> CacheEntry | None:
        try:
            rows = await run_in_threadpool(self._select, namespace, key)
        except _BACKEND_ERRORS as error:
            logger.warning("cache.get_failed namespace=%s key=%s error=%s", namespace, key, error)
            return None

        if not rows:
            return None
        row = rows[0]
        expires_at = parse_datetime(row.get("expires_at"))
        if expires_at is None or expires_at <= now_utc():
            return None
        wrapped = row.get("value") or {}
        return CacheEntry(value=wrapped.get("v"))

    async def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        payload = {
            "namespace": namespace,
            "key": key,
            "value": {"v": value},
            "expires_at": (now_utc() + timedelta(seconds=ttl_seconds)).isoformat(),
        }
        try:
            await run_in_threadpool(self._upsert, payload)
        except _BACKEND_ERRORS as error:
            logger.warning("cache.set_failed namespace=%s key=%s error=%s", namespace, key, error)

    async def delete(self, namespace: str, key: str) -> None:
        try:
            await run_in_threadpool(self._delete, namespace, key)
        except _BACKEND_ERRORS as error:
            logger.warning("cache.delete_failed namespace=%s key=%s error=%s", namespace, key, error)

    def _select(self, namespace: str, key: str) -> list[dict]:
        result = (
            self._client.table(self.TABLE_NAME)
            .select("value,expires_at")
            .eq("namespace", namespace)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        return result.data or []

    def _upsert(self, payload: dict[str, Any]) -> None:
        self._client.table(self.TABLE_NAME).upsert(payload, on_conflict="namespace,key").execute()

    def _delete(self, namespace: str, key: str) -> None:
        (
            self._client.table(self.TABLE_NAME)
            .delete()
            .eq("namespace", namespace)
            .eq("key", key)
            .execute()
        )
