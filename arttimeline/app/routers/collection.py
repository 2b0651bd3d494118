# arttimeline/app/routers/collection.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from arttimeline.app.deps import CurrentUser, get_collection_service, get_current_user
from arttimeline.app.domain.errors import RepositoryError
from arttimeline.app.domain.models import SaveOutcome
from arttimeline.app.schemas.collection import (
    CollectionCheckResponse,
    CollectionItem,
    CollectionSaveRequest,
    CollectionSaveResponse,
)
from arttimeline.app.services.collection_service import CollectionService

router = APIRouter(prefix="/api/collection", tags=["collection"])


@router.get("", response_model=list[CollectionItem])
async def list_collection(
    user: CurrentUser = Depends(get_current_user),
    collection: CollectionService = Depends(get_collection_service),
) -> list[CollectionItem]:
    try:
        entries = await collection.list_entries(UUID(user.id))
    except RepositoryError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return [CollectionItem.from_entry(entry) for entry in entries]


@router.post("", response_model=CollectionSaveResponse, status_code=status.HTTP_201_CREATED)
async def save_artwork(
    payload: CollectionSaveRequest,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    collection: CollectionService = Depends(get_collection_service),
) -> CollectionSaveResponse:
    try:
        outcome = await collection.save(
            UUID(user.id),
            payload.artwork_id,
            payload.title,
            artist=payload.artist,
            year=payload.year,
            image=payload.image,
            period=payload.period,
            medium=payload.medium,
            location=payload.location,
            description=payload.description,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RepositoryError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    if outcome is SaveOutcome.ALREADY_EXISTS:
        response.status_code = status.HTTP_200_OK
        return CollectionSaveResponse(message="Artwork already in collection", alreadySaved=True)
    return CollectionSaveResponse(message="Artwork saved to collection")


@router.delete("/{artwork_id}", response_model=CollectionSaveResponse)
async def remove_artwork(
    artwork_id: int,
    user: CurrentUser = Depends(get_current_user),
    collection: CollectionService = Depends(get_collection_service),
) -> CollectionSaveResponse:
    try:
        removed = await collection.remove(UUID(user.id), artwork_id)
    except RepositoryError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not removed:
        raise HTTPException(status_code=404, detail="Artwork not found in collection")
    return CollectionSaveResponse(message="Artwork removed from collection")


@router.get("/check/{artwork_id}", response_model=CollectionCheckResponse)
async def check_artwork(
    artwork_id: int,
    user: CurrentUser = Depends(get_current_user),
    collection: CollectionService = Depends(get_collection_service),
) -> CollectionCheckResponse:
    try:
        saved = await collection.exists(UUID(user.id), artwork_id)
    except RepositoryError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return CollectionCheckResponse(isSaved=saved)
