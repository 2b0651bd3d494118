# arttimeline/app/domain/models.py
"""
Domain models for the art timeline.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID


@dataclass(frozen=True)
class Period:
    """A named era of art history used to seed artwork discovery."""
    id: str
    title: str
    date_range: str
    start_year: int
    end_year: int
    queries: tuple[str, ...]


@dataclass
class Artwork:
    """
    Normalized artwork record built from a Met collection object.
    Ephemeral: rebuilt from cache or the remote source on every request.
    """
    id: int
    title: str
    artist: str
    image: str
    artist_bio: str = ""
    year_label: str = "Date Unknown"
    begin_year: Optional[int] = None
    end_year: Optional[int] = None

    # Display fields, carried through verbatim
    culture: str = ""
    period: str = ""
    location: str = ""
    medium: str = "Medium Unknown"
    dimensions: str = ""
    department: str = ""
    classification: str = ""
    description: str = ""
    additional_images: list[str] = field(default_factory=list)
    object_url: str = ""
    is_public_domain: bool = False
    repository: str = ""

    @property
    def has_known_years(self) -> bool:
        return self.begin_year is not None and self.end_year is not None

    def overlaps(self, start_year: int, end_year: int) -> bool:
        """Inclusive interval overlap; unknown bounds never match."""
        if not self.has_known_years:
            return False
        return self.begin_year <= end_year and self.end_year >= start_year

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "image": self.image,
            "artist_bio": self.artist_bio,
            "year_label": self.year_label,
            "begin_year": self.begin_year,
            "end_year": self.end_year,
            "culture": self.culture,
            "period": self.period,
            "location": self.location,
            "medium": self.medium,
            "dimensions": self.dimensions,
            "department": self.department,
            "classification": self.classification,
            "description": self.description,
            "additional_images": list(self.additional_images),
            "object_url": self.object_url,
            "is_public_domain": self.is_public_domain,
            "repository": self.repository,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Artwork":
        return cls(**data)


class SaveOutcome(str, Enum):
    """Result of saving an artwork to a collection."""
    CREATED = "CREATED"
    ALREADY_EXISTS = "ALREADY_EXISTS"


@dataclass
class CollectionEntry:
    """
    A saved artwork reference with display fields captured at save time.
    Never re-fetched; display data may go stale relative to the source.
    """
    user_id: UUID
    artwork_id: int
    title: str
    artist: Optional[str] = None
    year: Optional[str] = None
    image: Optional[str] = None
    period: Optional[str] = None
    medium: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None


class OtpPurpose(str, Enum):
    REGISTRATION = "registration"
    TWO_FACTOR = "two_factor"
    PASSWORD_RESET = "password_reset"


@dataclass
class User:
    """An account held by the identity provider (Supabase Auth)."""
    id: UUID
    name: str
    email: str
    is_verified: bool = False
    two_factor_enabled: bool = False
    two_factor_confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def has_two_factor(self) -> bool:
        """Check if the user has enabled and confirmed two-factor auth."""
        return self.two_factor_enabled and self.two_factor_confirmed_at is not None


@dataclass
class AuthSession:
    """A signed-in session issued by the identity provider."""
    access_token: str
    refresh_token: str
    expires_at: Optional[int]
    user: User
