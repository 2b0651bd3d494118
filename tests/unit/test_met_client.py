from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
import pytest

from arttimeline.app.infra.cache.base import NAMESPACE_MET_OBJECT, NAMESPACE_MET_SEARCH
from arttimeline.app.infra.cache.memory import InMemoryCacheStore
from arttimeline.services.met_client import MetCollectionClient, normalize_met_object

BASE_URL = "https://met.test/v1"


def _record(object_id: int = 436535, **overrides: Any) -> dict[str, Any]:
    record = {
        "objectID": object_id,
        "title": "Wheat Field with Cypresses",
        "artistDisplayName": "Vincent van Gogh",
        "artistDisplayBio": "Dutch, 1853-1890",
        "objectDate": "1889",
        "objectBeginDate": 1889,
        "objectEndDate": 1889,
        "primaryImage": "https://images.test/full.jpg",
        "primaryImageSmall": "https://images.test/small.jpg",
        "medium": "Oil on canvas",
        "country": "",
        "city": "Saint-Rémy",
        "creditLine": "Purchase, 1993",
        "additionalImages": ["https://images.test/a.jpg", ""],
        "isPublicDomain": True,
    }
    record.update(overrides)
    return record


class RecordingHandler:
    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def _client(handler: RecordingHandler, cache: InMemoryCacheStore) -> MetCollectionClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MetCollectionClient(cache, http, base_url=BASE_URL, user_agent="ArtTimelineTest/1.0")


class TestNormalizeMetObject:
    def test_maps_fields(self) -> None:
        artwork = normalize_met_object(_record())
        assert artwork is not None
        assert artwork.id == 436535
        assert artwork.image == "https://images.test/full.jpg"
        assert artwork.location == "Saint-Rémy"
        assert artwork.description == "Purchase, 1993"
        assert artwork.additional_images == ["https://images.test/a.jpg"]
        assert artwork.is_public_domain is True
        assert (artwork.begin_year, artwork.end_year) == (1889, 1889)

    def test_falls_back_to_small_image(self) -> None:
        artwork = normalize_met_object(_record(primaryImage=""))
        assert artwork.image == "https://images.test/small.jpg"

    def test_no_image_is_absent(self) -> None:
        assert normalize_met_object(_record(primaryImage="", primaryImageSmall="")) is None

    def test_missing_object_id_is_absent(self) -> None:
        assert normalize_met_object(_record(objectID="abc")) is None
        assert normalize_met_object(["not", "a", "dict"]) is None

    def test_defaults_for_blank_fields(self) -> None:
        artwork = normalize_met_object(
            _record(title="", artistDisplayName=None, objectDate="", medium="  ")
        )
        assert artwork.title == "Untitled"
        assert artwork.artist == "Unknown Artist"
        assert artwork.year_label == "Date Unknown"
        assert artwork.medium == "Medium Unknown"

    @pytest.mark.parametrize("value", [None, "circa 1500", True, 1500.5])
    def test_non_integer_years_are_unknown(self, value: Any) -> None:
        artwork = normalize_met_object(_record(objectBeginDate=value))
        assert artwork.begin_year is None
        assert artwork.has_known_years is False


class TestFetchArtwork:
    def test_second_fetch_is_served_from_cache(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(200, json=_record()))
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            first = await client.fetch_artwork(436535)
            second = await client.fetch_artwork(436535)
            await client.aclose()
            return first, second

        first, second = asyncio.run(scenario())
        assert first == second
        assert len(handler.requests) == 1
        request = handler.requests[0]
        assert request.url.path == "/v1/objects/436535"
        assert request.headers["User-Agent"] == "ArtTimelineTest/1.0"

    def test_not_found_is_cached_as_absence(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(404, json={"message": "Not a valid object"}))
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            results = [await client.fetch_artwork(1), await client.fetch_artwork(1)]
            entry = await cache.get(NAMESPACE_MET_OBJECT, "1")
            await client.aclose()
            return results, entry

        results, entry = asyncio.run(scenario())
        assert results == [None, None]
        assert len(handler.requests) == 1
        assert entry is not None and entry.value is None

    def test_record_without_image_is_cached_as_absence(self) -> None:
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_record(primaryImage="", primaryImageSmall=""))
        )
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            await client.fetch_artwork(7)
            result = await client.fetch_artwork(7)
            await client.aclose()
            return result

        assert asyncio.run(scenario()) is None
        assert len(handler.requests) == 1

    def test_timeout_is_absent_and_not_cached(self) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        handler = RecordingHandler(respond)
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            result = await client.fetch_artwork(9)
            entry = await cache.get(NAMESPACE_MET_OBJECT, "9")
            await client.aclose()
            return result, entry

        result, entry = asyncio.run(scenario())
        assert result is None
        assert entry is None

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient_errors_are_not_cached(self, status: int) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(status))
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            await client.fetch_artwork(3)
            await client.fetch_artwork(3)
            await client.aclose()

        asyncio.run(scenario())
        assert len(handler.requests) == 2

    def test_invalid_json_is_absent(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(200, content=b"<html>"))

        async def scenario():
            client = _client(handler, InMemoryCacheStore())
            result = await client.fetch_artwork(4)
            await client.aclose()
            return result

        assert asyncio.run(scenario()) is None


class TestSearch:
    def test_drops_non_integer_ids_and_caches(self) -> None:
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json={"total": 4, "objectIDs": [1, "2", True, 3]})
        )
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            first = await client.search("Baroque")
            second = await client.search("Baroque")
            await client.aclose()
            return first, second

        first, second = asyncio.run(scenario())
        assert first == [1, 3]
        assert second == [1, 3]
        assert len(handler.requests) == 1
        params = handler.requests[0].url.params
        assert params["q"] == "Baroque"
        assert params["hasImages"] == "true"

    def test_null_object_ids_is_empty(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(200, json={"total": 0, "objectIDs": None}))

        async def scenario():
            client = _client(handler, InMemoryCacheStore())
            result = await client.search("nothing here")
            await client.aclose()
            return result

        assert asyncio.run(scenario()) == []

    def test_failure_is_empty_and_not_cached(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(429))
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            result = await client.search("Greek")
            strict = await client.try_search("Greek")
            await client.aclose()
            return result, strict

        result, strict = asyncio.run(scenario())
        assert result == []
        assert strict is None
        assert len(handler.requests) == 2
        assert len(cache) == 0

    def test_flag_is_part_of_the_key(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(200, json={"objectIDs": [5]}))
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            await client.search("Greek", has_images=True)
            await client.search("Greek", has_images=False)
            await client.aclose()

        asyncio.run(scenario())
        assert len(handler.requests) == 2


class TestFetchRawObject:
    def test_returns_raw_record(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(200, json=_record(primaryImage="")))

        async def scenario():
            client = _client(handler, InMemoryCacheStore())
            result = await client.fetch_raw_object(436535)
            await client.aclose()
            return result

        raw = asyncio.run(scenario())
        assert raw["objectID"] == 436535
        assert raw["primaryImage"] == ""


class TestFetchMany:
    def test_keeps_input_order_and_drops_absent(self) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            object_id = int(request.url.path.rsplit("/", 1)[-1])
            if object_id == 2:
                return httpx.Response(404)
            return httpx.Response(200, json=_record(object_id))

        handler = RecordingHandler(respond)

        async def scenario():
            client = _client(handler, InMemoryCacheStore())
            result = await client.fetch_many([3, 2, 1])
            await client.aclose()
            return result

        assert [artwork.id for artwork in asyncio.run(scenario())] == [3, 1]

    def test_truncates_to_twenty(self) -> None:
        handler = RecordingHandler(
            lambda request: httpx.Response(200, json=_record(int(request.url.path.rsplit("/", 1)[-1])))
        )

        async def scenario():
            client = _client(handler, InMemoryCacheStore())
            result = await client.fetch_many(range(1, 31))
            await client.aclose()
            return result

        assert len(asyncio.run(scenario())) == 20
        assert len(handler.requests) == 20


class TestCacheNamespaces:
    def test_search_key_lands_in_search_namespace(self) -> None:
        handler = RecordingHandler(lambda request: httpx.Response(200, json={"objectIDs": [1]}))
        cache = InMemoryCacheStore()

        async def scenario():
            client = _client(handler, cache)
            await client.search("Ancient")
            await client.aclose()
            return list(cache._entries)

        keys = asyncio.run(scenario())
        assert [namespace for namespace, _ in keys] == [NAMESPACE_MET_SEARCH]
