from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import List, Optional
from uuid import UUID
from planner.schemas import PhotoOut
from planner.db.session import get_session
from planner.db.models.user import User
from planner.services.photo_service import PhotoService
from planner.storage.object_store import ObjectStore, get_object_store
from planner.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events/{event_id}/photos", tags=["photos"])


def get_photo_service(
    session: AsyncSession = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
) -> PhotoService:
    return PhotoService(session, store)


@router.get("", response_model=List[PhotoOut])
async def list_event_photos(
    event_id: UUID,
    photo_service: PhotoService = Depends(get_photo_service)
):
    """Photos of an event, most recent upload first."""
    return await photo_service.list_photos(event_id)


@router.post("", response_model=PhotoOut, status_code=status.HTTP_201_CREATED)
async def upload_event_photo(
    event_id: UUID,
    photo: Optional[UploadFile] = File(None),
    caption: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    photo_service: PhotoService = Depends(get_photo_service)
):
    """
    Upload a JPEG, PNG or WebP image of at most 10MB to an event.

    Multipart fields: ``photo`` (the file) and an optional ``caption``.
    """
    return await photo_service.upload_photo(event_id, user, photo, caption)


@router.get("/{photo_id}", response_model=PhotoOut)
async def get_event_photo(
    event_id: UUID,
    photo_id: UUID,
    photo_service: PhotoService = Depends(get_photo_service)
):
    return await photo_service.get_photo(event_id, photo_id)


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_photo(
    event_id: UUID,
    photo_id: UUID,
    user: User = Depends(get_current_user),
    photo_service: PhotoService = Depends(get_photo_service)
):
    await photo_service.delete_photo(event_id, photo_id, user)
