# arttimeline/app/routers/artworks.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from arttimeline.app.deps import get_timeline_service
from arttimeline.app.schemas.artworks import ArtworkResponse, PeriodResponse
from arttimeline.app.services.timeline_service import TimelineService

router = APIRouter(prefix="/api", tags=["artworks"])


@router.get("/periods", response_model=list[PeriodResponse])
async def list_periods(
    timeline: TimelineService = Depends(get_timeline_service),
) -> list[PeriodResponse]:
    return [PeriodResponse.from_period(period) for period in timeline.periods()]


@router.get("/artworks/period/{period_id}", response_model=list[ArtworkResponse])
async def artworks_for_period(
    period_id: str,
    limit: Optional[int] = Query(default=None),
    timeline: TimelineService = Depends(get_timeline_service),
) -> list[ArtworkResponse]:
    # Unknown periods and exhausted pools are both valid empty answers
    artworks = await timeline.artworks_for_period(period_id, limit)
    return [ArtworkResponse.from_artwork(artwork) for artwork in artworks]


@router.get("/artworks/{artwork_id}", response_model=ArtworkResponse)
async def get_artwork(
    artwork_id: int,
    timeline: TimelineService = Depends(get_timeline_service),
) -> ArtworkResponse:
    artwork = await timeline.artwork(artwork_id)
    if artwork is None:
        raise HTTPException(status_code=404, detail="Artwork not found")
    return ArtworkResponse.from_artwork(artwork)
