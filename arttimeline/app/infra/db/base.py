# arttimeline/app/infra/db/base.py
"""
Abstract base classes for persistence.
These interfaces allow easy swapping between storage backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from arttimeline.app.domain.models import CollectionEntry, SaveOutcome


class CollectionRepository(ABC):
    """
    Abstract interface for a user's saved artworks.

    Implementations:
    - SupabaseCollectionRepository: ``saved_artworks`` table with a unique
      (user_id, artwork_id) constraint
    """

    @abstractmethod
    def list_entries(self, user_id: UUID) -> list[CollectionEntry]:
        """
        Get a user's saved artworks, most recently added first.

        Args:
            user_id: The owner

        Returns:
            List of entries
        """
        pass

    @abstractmethod
    def save(self, entry: CollectionEntry) -> SaveOutcome:
        """
        Save an artwork for ``entry.user_id``.

        A duplicate (user_id, artwork_id) pair is a no-op reported as
        ALREADY_EXISTS rather than a second row.

        Args:
            entry: Entry with display fields captured now

        Returns:
            CREATED or ALREADY_EXISTS
        """
        pass

    @abstractmethod
    def remove(self, user_id: UUID, artwork_id: int) -> bool:
        """
        Remove a saved artwork.

        Returns:
            True if an entry was removed, False if none existed
        """
        pass

    @abstractmethod
    def exists(self, user_id: UUID, artwork_id: int) -> bool:
        pass
