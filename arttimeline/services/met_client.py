from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any, Iterable

import httpx

from arttimeline.app.domain.models import Artwork
from arttimeline.app.infra.cache.base import (
    NAMESPACE_MET_OBJECT,
    NAMESPACE_MET_OBJECT_RAW,
    NAMESPACE_MET_SEARCH,
    CacheStore,
)
from .errors import (
    FetchFailedError,
    NetworkTimeoutError,
    NotFoundError,
    RateLimitedError,
    ServiceError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://collectionapi.metmuseum.org/public/collection/v1"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_SEARCH_TIMEOUT = 15.0
DEFAULT_OBJECT_TIMEOUT = 10.0
DEFAULT_SEARCH_TTL = 86_400
DEFAULT_OBJECT_TTL = 604_800
MAX_BATCH_IDS = 20


def _clean_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _year(value: object) -> int | None:
    # Met dates are ints; bool is an int subclass and never a year.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = _clean_string(value)
    if text and text.lstrip("-").isdigit():
        return int(text)
    return None


def _object_id(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in (_clean_string(entry) for entry in value) if item]


def extract_image(data: dict[str, Any]) -> str | None:
    return _clean_string(data.get("primaryImage")) or _clean_string(data.get("primaryImageSmall"))


def normalize_met_object(data: object) -> Artwork | None:
    """Build an Artwork from a raw Met record; None when it has no image or id."""
    if not isinstance(data, dict):
        return None

    object_id = _object_id(data.get("objectID"))
    image = extract_image(data)
    if object_id is None or image is None:
        return None

    return Artwork(
        id=object_id,
        title=_clean_string(data.get("title")) or "Untitled",
        artist=_clean_string(data.get("artistDisplayName")) or "Unknown Artist",
        image=image,
        artist_bio=_clean_string(data.get("artistDisplayBio")) or "",
        year_label=_clean_string(data.get("objectDate")) or "Date Unknown",
        begin_year=_year(data.get("objectBeginDate")),
        end_year=_year(data.get("objectEndDate")),
        culture=_clean_string(data.get("culture")) or "",
        period=_clean_string(data.get("period")) or "",
        location=_clean_string(data.get("country")) or _clean_string(data.get("city")) or "",
        medium=_clean_string(data.get("medium")) or "Medium Unknown",
        dimensions=_clean_string(data.get("dimensions")) or "",
        department=_clean_string(data.get("department")) or "",
        classification=_clean_string(data.get("classification")) or "",
        description=_clean_string(data.get("creditLine")) or "",
        additional_images=_string_list(data.get("additionalImages")),
        object_url=_clean_string(data.get("objectURL")) or "",
        is_public_domain=data.get("isPublicDomain") is True,
        repository=_clean_string(data.get("repository")) or "",
    )


def _search_key(query: str, has_images: bool) -> str:
    return hashlib.md5(f"{query}{int(has_images)}".encode("utf-8")).hexdigest()


def _parse_object_ids(payload: object) -> list[int]:
    if not isinstance(payload, dict):
        raise FetchFailedError("Unexpected search payload")
    raw_ids = payload.get("objectIDs") or []
    if not isinstance(raw_ids, list):
        return []
    return [object_id for object_id in (_object_id(value) for value in raw_ids) if object_id is not None]


class MetCollectionClient:
    """
    Best-effort access to the Met collection API behind a response cache.

    Lookups never raise for remote trouble: a failed call is an absence.
    Definitive absences (404, records without an image) are cached like
    hits; transient failures (timeouts, rate limits, 5xx) are not.
    This layer performs no retries.
    """

    def __init__(
        self,
        cache: CacheStore,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        search_timeout: float = DEFAULT_SEARCH_TIMEOUT,
        object_timeout: float = DEFAULT_OBJECT_TIMEOUT,
        search_ttl: int = DEFAULT_SEARCH_TTL,
        object_ttl: int = DEFAULT_OBJECT_TTL,
    ):
        self._cache = cache
        self._http = http_client or httpx.AsyncClient(follow_redirects=True)
        self._base_url = base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent}
        self.search_timeout = search_timeout
        self.object_timeout = object_timeout
        self.search_ttl = search_ttl
        self.object_ttl = object_ttl

    async def aclose(self) -> None:
        await self._http.aclose()

    async def search(self, query: str, has_images: bool = True, ttl: int | None = None) -> list[int]:
        object_ids = await self.try_search(query, has_images, ttl)
        return object_ids if object_ids is not None else []

    async def try_search(self, query: str, has_images: bool = True, ttl: int | None = None) -> list[int] | None:
        """Like ``search`` but returns None when the remote call failed."""
        key = _search_key(query, has_images)
        cached = await self._cache.get(NAMESPACE_MET_SEARCH, key)
        if cached is not None:
            return list(cached.value or [])

        params = {"q": query, "hasImages": "true" if has_images else "false"}
        try:
            payload = await self._get_json("/search", params, self.search_timeout)
            object_ids = _parse_object_ids(payload)
        except NotFoundError:
            object_ids = []
        except ServiceError as error:
            logger.warning("met.search_failed query=%r error=%s", query, error)
            return None

        await self._cache.set(NAMESPACE_MET_SEARCH, key, object_ids, self._ttl(ttl, self.search_ttl))
        logger.debug("met.search query=%r results=%d", query, len(object_ids))
        return object_ids

    async def fetch_artwork(self, object_id: int, ttl: int | None = None) -> Artwork | None:
        key = str(object_id)
        cached = await self._cache.get(NAMESPACE_MET_OBJECT, key)
        if cached is not None:
            return Artwork.from_dict(cached.value) if cached.value else None

        try:
            payload = await self._get_json(f"/objects/{object_id}", None, self.object_timeout)
        except NotFoundError:
            artwork = None
        except ServiceError as error:
            logger.warning("met.object_failed id=%s error=%s", object_id, error)
            return None
        else:
            artwork = normalize_met_object(payload)

        value = artwork.to_dict() if artwork else None
        await self._cache.set(NAMESPACE_MET_OBJECT, key, value, self._ttl(ttl, self.object_ttl))
        return artwork

    async def fetch_raw_object(self, object_id: int, ttl: int | None = None) -> dict[str, Any] | None:
        key = str(object_id)
        cached = await self._cache.get(NAMESPACE_MET_OBJECT_RAW, key)
        if cached is not None:
            return cached.value

        try:
            payload = await self._get_json(f"/objects/{object_id}", None, self.object_timeout)
        except NotFoundError:
            payload = None
        except ServiceError as error:
            logger.warning("met.object_failed id=%s error=%s", object_id, error)
            return None

        if payload is not None and not isinstance(payload, dict):
            return None
        await self._cache.set(NAMESPACE_MET_OBJECT_RAW, key, payload, self._ttl(ttl, self.object_ttl))
        return payload

    async def fetch_many(self, object_ids: Iterable[int]) -> list[Artwork]:
        ids = list(object_ids)[:MAX_BATCH_IDS]
        results = await asyncio.gather(*(self.fetch_artwork(object_id) for object_id in ids))
        return [artwork for artwork in results if artwork is not None]

    async def _get_json(self, path: str, params: dict[str, str] | None, timeout: float) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.get(url, params=params, headers=self._headers, timeout=timeout)
        except httpx.TimeoutException as error:
            raise NetworkTimeoutError(url, timeout) from error
        except httpx.TransportError as error:
            raise FetchFailedError(f"Transport error for {url}: {error}") from error

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if response.status_code == 429:
            raise RateLimitedError(f"Rate limited: {url}")
        if response.is_error:
            raise FetchFailedError(f"HTTP {response.status_code} for {url}")

        try:
            return response.json()
        except ValueError as error:
            raise FetchFailedError(f"Invalid JSON from {url}") from error

    @staticmethod
    def _ttl(override: int | None, default: int) -> int:
        return default if override is None else override
