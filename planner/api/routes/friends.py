from fastapi import APIRouter, Depends, status
from uuid import UUID
from planner.schemas import FriendRequestAction, FriendRequestCreate, FriendsOut, MessageResponse
from planner.db.session import get_session
from planner.db.models.user import User
from planner.services.friend_service import FriendService
from planner.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/friends", tags=["friends"])


def get_friend_service(session: AsyncSession = Depends(get_session)) -> FriendService:
    return FriendService(session)


@router.get("", response_model=FriendsOut)
async def list_friends(
    user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service)
):
    """The caller's friends and the pending requests they have received."""
    return await friend_service.list_friends(user.id)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    payload: FriendRequestCreate,
    user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service)
):
    await friend_service.send_request(user, payload.username)
    return {"message": "Friend request sent"}


@router.put("/request", response_model=MessageResponse)
async def respond_to_friend_request(
    payload: FriendRequestAction,
    user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service)
):
    await friend_service.respond(user, payload.request_id, payload.action)
    if payload.action == "accept":
        return {"message": "Friend request accepted"}
    return {"message": "Friend request declined"}


@router.delete("/{friend_id}", response_model=MessageResponse)
async def remove_friend(
    friend_id: UUID,
    user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service)
):
    await friend_service.remove_friend(user, friend_id)
    return {"message": "Friend removed"}
