# arttimeline/app/services/collection_service.py
"""
Collection service.
Saves, lists and removes a user's artworks.
"""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from arttimeline.app.domain.models import CollectionEntry, SaveOutcome
from arttimeline.app.infra.db.base import CollectionRepository

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class CollectionService:
    """
    Thin async facade over the synchronous collection repository.
    Not-found conditions come back as values, never as exceptions.
    """

    def __init__(self, repository: CollectionRepository):
        self._repo = repository

    async def list_entries(self, user_id: UUID) -> list[CollectionEntry]:
        return await run_in_threadpool(self._repo.list_entries, user_id)

    async def save(
        self,
        user_id: UUID,
        artwork_id: int,
        title: str,
        *,
        artist: Optional[str] = None,
        year: Optional[str] = None,
        image: Optional[str] = None,
        period: Optional[str] = None,
        medium: Optional[str] = None,
        location: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SaveOutcome:
        """
        Save an artwork with the display fields the client shows right now.

        Args:
            user_id: The owner
            artwork_id: Met object id
            title: Required display title

        Returns:
            CREATED, or ALREADY_EXISTS when the pair was saved before
        """
        title_text = title.strip()
        if not title_text:
            raise ValueError("Title is required")

        entry = CollectionEntry(
            user_id=user_id,
            artwork_id=artwork_id,
            title=title_text,
            artist=_clean(artist),
            year=_clean(year),
            image=_clean(image),
            period=_clean(period),
            medium=_clean(medium),
            location=_clean(location),
            description=_clean(description),
        )
        return await run_in_threadpool(self._repo.save, entry)

    async def remove(self, user_id: UUID, artwork_id: int) -> bool:
        removed = await run_in_threadpool(self._repo.remove, user_id, artwork_id)
        if not removed:
            logger.info("Artwork not in collection: user=%s, artwork=%s", user_id, artwork_id)
        return removed

    async def exists(self, user_id: UUID, artwork_id: int) -> bool:
        return await run_in_threadpool(self._repo.exists, user_id, artwork_id)
