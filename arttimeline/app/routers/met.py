# arttimeline/app/routers/met.py
"""Thin proxy over the Met collection API, served from the shared cache."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from arttimeline.app.deps import get_met_client
from arttimeline.app.schemas.artworks import ArtworkResponse, BatchRequest, SearchResponse
from arttimeline.services.met_client import MAX_BATCH_IDS, MetCollectionClient

router = APIRouter(prefix="/api/met", tags=["met"])


def _valid_ids(values: list[Any]) -> list[int]:
    ids: list[int] = []
    for value in values:
        if isinstance(value, bool):
            continue
        if isinstance(value, int) and value > 0:
            ids.append(value)
        elif isinstance(value, str) and value.strip().isdigit():
            ids.append(int(value.strip()))
    return ids


@router.get("/search", response_model=SearchResponse, response_model_exclude_none=True)
async def search(
    q: str = Query(..., min_length=1),
    hasImages: bool = Query(default=True),
    client: MetCollectionClient = Depends(get_met_client),
) -> SearchResponse:
    object_ids = await client.try_search(q, has_images=hasImages)
    if object_ids is None:
        return SearchResponse(objectIDs=[], error="Search failed")
    return SearchResponse(objectIDs=object_ids)


@router.get("/objects/{object_id}")
async def get_object(
    object_id: int,
    client: MetCollectionClient = Depends(get_met_client),
) -> dict[str, Any]:
    payload = await client.fetch_raw_object(object_id)
    if payload is None:
        raise HTTPException(status_code=404, detail="Object not found")
    return payload


@router.post("/objects/batch", response_model=list[ArtworkResponse])
async def get_objects_batch(
    payload: BatchRequest,
    client: MetCollectionClient = Depends(get_met_client),
) -> list[ArtworkResponse]:
    ids = _valid_ids(payload.ids)[:MAX_BATCH_IDS]
    if not ids:
        raise HTTPException(status_code=400, detail="ids must be a non-empty list of object ids")
    artworks = await client.fetch_many(ids)
    return [ArtworkResponse.from_artwork(artwork) for artwork in artworks]
