from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable

from arttimeline.app.domain.models import Artwork, Period
from .met_client import MetCollectionClient
from .periods import get_period
from .shuffle import deterministic_shuffle, seed_for_date

log = logging.getLogger("curator")

DEFAULT_BATCH_SIZE = 8
DEFAULT_IDS_PER_QUERY = 50
DEFAULT_POOL_FACTOR = 20
DEFAULT_BATCH_PAUSE_SECONDS = 0.05


def merge_unique(id_lists: Iterable[list[int]], per_list_limit: int) -> list[int]:
    """Concatenate the head of each list, keeping the first occurrence of every id."""
    seen: dict[int, None] = {}
    for ids in id_lists:
        for object_id in ids[:per_list_limit]:
            seen.setdefault(object_id, None)
    return list(seen)


class PeriodCurator:
    """
    Turns a period into a bounded list of image-bearing artworks whose dates
    overlap the period.

    Output order follows the day's shuffled candidate order exactly: each
    batch is gathered concurrently but read back in submission order.
    """

    def __init__(
        self,
        client: MetCollectionClient,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        ids_per_query: int = DEFAULT_IDS_PER_QUERY,
        pool_factor: int = DEFAULT_POOL_FACTOR,
        batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._client = client
        self.batch_size = batch_size
        self.ids_per_query = ids_per_query
        self.pool_factor = pool_factor
        self.batch_pause_seconds = batch_pause_seconds

    async def curate(self, period_id: str, target_count: int, today: date | None = None) -> list[Artwork]:
        day = today or date.today()
        period = get_period(period_id, day)
        if period is None:
            log.warning("curation.unknown_period period=%s", period_id)
            return []
        if target_count <= 0:
            return []

        candidates = await self._collect_candidates(period)
        if not candidates:
            log.warning("curation.no_candidates period=%s", period_id)
            return []

        shuffled = deterministic_shuffle(candidates, seed_for_date(day))
        pool = shuffled[: target_count * self.pool_factor]
        log.info(
            "curation.start period=%s target=%d candidates=%d pool=%d",
            period_id,
            target_count,
            len(candidates),
            len(pool),
        )

        artworks = await self._resolve(period, pool, target_count)
        log.info("curation.done period=%s accepted=%d", period_id, len(artworks))
        return artworks

    async def _collect_candidates(self, period: Period) -> list[int]:
        results = await asyncio.gather(
            *(self._client.search(query, has_images=True) for query in period.queries),
            return_exceptions=True,
        )
        id_lists: list[list[int]] = []
        for query, result in zip(period.queries, results):
            if isinstance(result, BaseException):
                log.warning("curation.search_failed period=%s query=%r error=%s", period.id, query, result)
                continue
            log.debug("curation.search period=%s query=%r results=%d", period.id, query, len(result))
            id_lists.append(result)
        return merge_unique(id_lists, self.ids_per_query)

    async def _resolve(self, period: Period, pool: list[int], target_count: int) -> list[Artwork]:
        accepted: list[Artwork] = []
        for start in range(0, len(pool), self.batch_size):
            batch = pool[start:start + self.batch_size]
            results = await asyncio.gather(
                *(self._client.fetch_artwork(object_id) for object_id in batch),
                return_exceptions=True,
            )
            for object_id, result in zip(batch, results):
                if isinstance(result, BaseException):
                    log.warning("curation.fetch_failed id=%s error=%s", object_id, result)
                    continue
                if self._accepts(period, result):
                    accepted.append(result)
                    if len(accepted) >= target_count:
                        return accepted

            has_more = start + self.batch_size < len(pool)
            if has_more and self.batch_pause_seconds > 0:
                await asyncio.sleep(self.batch_pause_seconds)
        return accepted

    @staticmethod
    def _accepts(period: Period, artwork: Artwork | None) -> bool:
        if artwork is None or not artwork.image:
            return False
        return artwork.overlaps(period.start_year, period.end_year)
