from fastapi import APIRouter, Depends, Response, status
from uuid import UUID
from planner.schemas import (
    AttendeeOut,
    AttendeeRSVPUpdate,
    EventAttendeesOut,
    InviteRequest,
    MessageResponse,
    RSVPRequest,
    RSVPStatusOut,
)
from planner.db.session import get_session
from planner.db.models import RSVPStatus, User
from planner.services.rsvp_service import RSVPService
from planner.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events/{event_id}", tags=["attendees"])


def get_rsvp_service(session: AsyncSession = Depends(get_session)) -> RSVPService:
    return RSVPService(session)


@router.post("/attendees", response_model=AttendeeOut, status_code=status.HTTP_201_CREATED)
async def invite_attendee(
    event_id: UUID,
    payload: InviteRequest,
    response: Response,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """
    Invite a user by username.

    Returns 201 with the new PENDING record, or 200 with the existing record
    when the user was already invited or has answered.
    """
    attendee, created = await rsvp_service.invite(event_id, payload.username, user)
    if not created:
        response.status_code = status.HTTP_200_OK
    return attendee


@router.get("/attendees", response_model=EventAttendeesOut)
async def list_event_attendees(
    event_id: UUID,
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    event = await rsvp_service.list_attendees(event_id)
    return {"event": event, "attendees": event.attendees}


@router.patch("/attendees", response_model=AttendeeOut)
async def update_own_attendance(
    event_id: UUID,
    payload: AttendeeRSVPUpdate,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """Answer an invitation; accepts YES, NO or MAYBE."""
    return await rsvp_service.set_rsvp(event_id, user.id, RSVPStatus(payload.rsvp))


@router.get("/rsvp", response_model=RSVPStatusOut)
async def get_rsvp(
    event_id: UUID,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    return await rsvp_service.get_rsvp_status(event_id, user.id)


@router.post("/rsvp", response_model=AttendeeOut)
async def set_rsvp(
    event_id: UUID,
    payload: RSVPRequest,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """Create or overwrite the caller's RSVP; PENDING is accepted here."""
    return await rsvp_service.set_rsvp(event_id, user.id, payload.rsvp)


@router.delete("/rsvp", response_model=MessageResponse)
async def cancel_rsvp(
    event_id: UUID,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    await rsvp_service.cancel_rsvp(event_id, user.id)
    return {"message": "Successfully removed attendance"}
