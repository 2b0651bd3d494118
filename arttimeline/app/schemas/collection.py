# arttimeline/app/schemas/collection.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from arttimeline.app.domain.models import CollectionEntry


class CollectionSaveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    artwork_id: int = Field(..., alias="artworkId", ge=1)
    title: str = Field(..., min_length=1, max_length=500)
    artist: Optional[str] = None
    year: Optional[str] = None
    image: Optional[str] = None
    period: Optional[str] = None
    medium: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None


class CollectionItem(BaseModel):
    id: Optional[int] = None
    artworkId: int
    title: str
    artist: Optional[str] = None
    year: Optional[str] = None
    image: Optional[str] = None
    period: Optional[str] = None
    medium: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    savedAt: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: CollectionEntry) -> "CollectionItem":
        return cls(
            id=entry.id,
            artworkId=entry.artwork_id,
            title=entry.title,
            artist=entry.artist,
            year=entry.year,
            image=entry.image,
            period=entry.period,
            medium=entry.medium,
            location=entry.location,
            description=entry.description,
            savedAt=entry.created_at.isoformat() if entry.created_at else None,
        )


class CollectionSaveResponse(BaseModel):
    message: str
    alreadySaved: bool = False


class CollectionCheckResponse(BaseModel):
    isSaved: bool
