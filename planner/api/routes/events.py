from fastapi import APIRouter, Depends, status
from typing import List, Optional
from uuid import UUID
from planner.schemas import CommentCreate, CommentOut, EventCreate, EventDetail, EventUpdate
from planner.db.session import get_session
from planner.db.models.user import User
from planner.services.event_service import EventService
from planner.storage.object_store import ObjectStore, get_object_store
from planner.auth import get_current_user, get_optional_user, get_mobile_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(
    session: AsyncSession = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
) -> EventService:
    return EventService(session, store)


@router.get("", response_model=List[EventDetail])
async def list_events(
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    Upcoming events visible to the caller, soonest first.

    Includes events the caller hosts or has accepted, public events,
    friends-only events of friends and private events the caller was
    invited to.
    """
    return await event_service.list_feed(user.id)


@router.get("/mobile", response_model=List[EventDetail])
async def list_events_mobile(
    user: User = Depends(get_mobile_user),
    event_service: EventService = Depends(get_event_service)
):
    """Same listing as ``GET /events`` for clients holding a mobile bearer token."""
    return await event_service.list_feed(user.id)


@router.get("/public", response_model=List[EventDetail])
async def list_public_events(
    event_service: EventService = Depends(get_event_service)
):
    """Upcoming public events, soonest first. No session required."""
    return await event_service.list_public()


@router.post("", response_model=EventDetail, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: EventCreate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.create_event(payload, user)


@router.get("/{event_id}", response_model=EventDetail)
async def get_event_detail(
    event_id: UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.get_event_for_viewer(event_id, viewer)


@router.put("/{event_id}", response_model=EventDetail)
async def update_event_endpoint(
    event_id: UUID,
    payload: EventUpdate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.update_event(event_id, payload, user)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: UUID,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    await event_service.delete_event(event_id, user)


@router.get("/{event_id}/comments", response_model=List[CommentOut])
async def list_event_comments(
    event_id: UUID,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """Comments on an event the caller may see, oldest first."""
    return await event_service.list_comments(event_id, user)


@router.post("/{event_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_event_comment(
    event_id: UUID,
    payload: CommentCreate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.add_comment(event_id, payload.text, user)
