# arttimeline/app/services/timeline_service.py
"""
Timeline service.
Serves curated period artworks and single artwork lookups behind the
server-side response cache.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from arttimeline.app.domain.models import Artwork, Period
from arttimeline.app.infra.cache.base import NAMESPACE_TIMELINE_PERIOD, CacheStore
from arttimeline.services.curator import PeriodCurator
from arttimeline.services.met_client import MetCollectionClient
from arttimeline.services.periods import list_periods

logger = logging.getLogger(__name__)


class TimelineService:
    """
    Service for the artwork endpoints.

    Responsibilities:
    - Cache each period's curated list for the day it was curated on
    - Clamp requested limits to the configured bounds
    - Resolve single artworks through the fetch layer
    """

    def __init__(
        self,
        client: MetCollectionClient,
        curator: PeriodCurator,
        cache: CacheStore,
        *,
        period_ttl_seconds: int = 86_400,
        default_limit: int = 4,
        max_limit: int = 24,
    ):
        self._client = client
        self._curator = curator
        self._cache = cache
        self.period_ttl_seconds = period_ttl_seconds
        self.default_limit = default_limit
        self.max_limit = max_limit

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(limit, self.max_limit))

    def periods(self, today: Optional[date] = None) -> list[Period]:
        return list_periods(today)

    async def artworks_for_period(
        self,
        period_id: str,
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[Artwork]:
        """
        Get the curated artworks for a period.

        The cache key includes the day, so a cached list never outlives the
        shuffle seed it was built with. Empty results are not cached: they
        usually mean the remote source was struggling.

        Args:
            period_id: Period identifier
            limit: Requested number of artworks (clamped)
            today: Day to curate for (defaults to today)

        Returns:
            Up to ``limit`` artworks, possibly empty
        """
        day = today or date.today()
        count = self.clamp_limit(limit)
        key = f"{period_id}:{count}:{day.isoformat()}"

        cached = await self._cache.get(NAMESPACE_TIMELINE_PERIOD, key)
        if cached is not None:
            return [Artwork.from_dict(item) for item in cached.value or []]

        artworks = await self._curator.curate(period_id, count, today=day)
        if artworks:
            await self._cache.set(
                NAMESPACE_TIMELINE_PERIOD,
                key,
                [artwork.to_dict() for artwork in artworks],
                self.period_ttl_seconds,
            )
        else:
            logger.info("timeline.empty period=%s day=%s", period_id, day.isoformat())
        return artworks

    async def artwork(self, artwork_id: int) -> Optional[Artwork]:
        return await self._client.fetch_artwork(artwork_id)
