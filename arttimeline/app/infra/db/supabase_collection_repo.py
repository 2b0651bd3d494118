from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from arttimeline.app.domain.errors import RepositoryError
from arttimeline.app.domain.models import CollectionEntry, SaveOutcome
from arttimeline.app.infra.db.base import CollectionRepository
from arttimeline.app.infra.db.rows import now_utc, parse_datetime, safe_str

logger = logging.getLogger(__name__)

_DISPLAY_FIELDS = ("artist", "year", "image", "period", "medium", "location", "description")


def _row_to_entry(row: dict[str, Any]) -> CollectionEntry:
    return CollectionEntry(
        id=int(row["id"]) if row.get("id") is not None else None,
        user_id=UUID(str(row["user_id"])),
        artwork_id=int(row["artwork_id"]),
        title=str(row.get("title") or ""),
        artist=safe_str(row.get("artist")),
        year=safe_str(row.get("year")),
        image=safe_str(row.get("image")),
        period=safe_str(row.get("period")),
        medium=safe_str(row.get("medium")),
        location=safe_str(row.get("location")),
        description=safe_str(row.get("description")),
        created_at=parse_datetime(row.get("created_at")),
    )


def _entry_to_row(entry: CollectionEntry) -> dict[str, Any]:
    now = now_utc().isoformat()
    row: dict[str, Any] = {
        "user_id": str(entry.user_id),
        "artwork_id": entry.artwork_id,
        "title": entry.title,
        "created_at": now,
        "updated_at": now,
    }
    for field_name in _DISPLAY_FIELDS:
        row[field_name] = getattr(entry, field_name)
    return row


class SupabaseCollectionRepository(CollectionRepository):
    TABLE_NAME = "saved_artworks"

    def __init__(self, client: Client):
        self._client = client
        logger.info("SupabaseCollectionRepository initialized")

    def list_entries(self, user_id: UUID) -> list[CollectionEntry]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("user_id", str(user_id))
                .order("created_at", desc=True)
                .execute()
            )
        except (ConnectionError, TimeoutError) as error:
            logger.error("Network error listing collection: %s", error)
            raise RepositoryError("list_entries", str(error)) from error
        return [_row_to_entry(row) for row in result.data or []]

    def save(self, entry: CollectionEntry) -> SaveOutcome:
        # ignore_duplicates turns a conflicting insert into an empty result,
        # so concurrent saves of the same pair stay a single row.
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .upsert(
                    _entry_to_row(entry),
                    on_conflict="user_id,artwork_id",
                    ignore_duplicates=True,
                )
                .execute()
            )
        except (ConnectionError, TimeoutError) as error:
            logger.error("Network error saving artwork: %s", error)
            raise RepositoryError("save", str(error)) from error

        if not result.data:
            logger.info("Artwork already saved: user=%s, artwork=%s", entry.user_id, entry.artwork_id)
            return SaveOutcome.ALREADY_EXISTS

        logger.info("Saved artwork: user=%s, artwork=%s", entry.user_id, entry.artwork_id)
        return SaveOutcome.CREATED

    def remove(self, user_id: UUID, artwork_id: int) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .delete()
                .eq("user_id", str(user_id))
                .eq("artwork_id", artwork_id)
                .execute()
            )
        except (ConnectionError, TimeoutError) as error:
            logger.error("Network error removing artwork: %s", error)
            raise RepositoryError("remove", str(error)) from error
        return bool(result.data)

    def exists(self, user_id: UUID, artwork_id: int) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("id")
                .eq("user_id", str(user_id))
                .eq("artwork_id", artwork_id)
                .limit(1)
                .execute()
            )
        except (ConnectionError, TimeoutError) as error:
            logger.error("Network error checking collection: %s", error)
            raise RepositoryError("exists", str(error)) from error
        return bool(result.data)
