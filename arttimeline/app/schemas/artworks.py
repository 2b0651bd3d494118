# arttimeline/app/schemas/artworks.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from arttimeline.app.domain.models import Artwork, Period


class PeriodResponse(BaseModel):
    id: str
    title: str
    dateRange: str
    startYear: int
    endYear: int
    queries: list[str] = Field(default_factory=list)

    @classmethod
    def from_period(cls, period: Period) -> "PeriodResponse":
        return cls(
            id=period.id,
            title=period.title,
            dateRange=period.date_range,
            startYear=period.start_year,
            endYear=period.end_year,
            queries=list(period.queries),
        )


class ArtworkResponse(BaseModel):
    id: int
    title: str
    artist: str
    artistBio: str = ""
    yearLabel: str = "Date Unknown"
    beginYear: Optional[int] = None
    endYear: Optional[int] = None
    image: str
    culture: str = ""
    period: str = ""
    location: str = ""
    medium: str = "Medium Unknown"
    dimensions: str = ""
    department: str = ""
    classification: str = ""
    description: str = ""
    additionalImages: list[str] = Field(default_factory=list)
    objectURL: str = ""
    isPublicDomain: bool = False
    repository: str = ""

    @classmethod
    def from_artwork(cls, artwork: Artwork) -> "ArtworkResponse":
        return cls(
            id=artwork.id,
            title=artwork.title,
            artist=artwork.artist,
            artistBio=artwork.artist_bio,
            yearLabel=artwork.year_label,
            beginYear=artwork.begin_year,
            endYear=artwork.end_year,
            image=artwork.image,
            culture=artwork.culture,
            period=artwork.period,
            location=artwork.location,
            medium=artwork.medium,
            dimensions=artwork.dimensions,
            department=artwork.department,
            classification=artwork.classification,
            description=artwork.description,
            additionalImages=list(artwork.additional_images),
            objectURL=artwork.object_url,
            isPublicDomain=artwork.is_public_domain,
            repository=artwork.repository,
        )


class SearchResponse(BaseModel):
    objectIDs: list[int] = Field(default_factory=list)
    error: Optional[str] = None


class BatchRequest(BaseModel):
    ids: list[Any] = Field(default_factory=list)
