from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from typing import List, Optional
from uuid import UUID
from planner.schemas import (
    InvitationOut,
    ProfileImageResponse,
    ProfileResponse,
    UserCreate,
    UserDetailOut,
    UserOut,
    UserSearchResponse,
    UserUpdate,
)
from planner.db.session import get_session
from planner.db.models.user import User
from planner.services.user_service import UserService
from planner.services.rsvp_service import RSVPService
from planner.storage.object_store import ObjectStore, get_object_store
from planner.auth import get_current_user, get_optional_user
from sqlalchemy.ext.asyncio import AsyncSession

# Collection routes live under /users, the caller's own account under /user
router = APIRouter(prefix="/users", tags=["users"])
me_router = APIRouter(prefix="/user", tags=["users"])


def get_user_service(
    session: AsyncSession = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
) -> UserService:
    return UserService(session, store)


def get_rsvp_service(session: AsyncSession = Depends(get_session)) -> RSVPService:
    return RSVPService(session)


@router.get("", response_model=List[UserOut])
async def list_users(
    limit: int = Query(100, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_service: UserService = Depends(get_user_service)
):
    return await user_service.list_users(limit=limit, offset=offset)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    user_service: UserService = Depends(get_user_service)
):
    """Create a user record for an externally authenticated identity (no password)."""
    return await user_service.create_user(payload)


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    query: str = Query(""),
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """
    Search users by username or name.

    The caller and their friends are left out; queries under two characters
    return an empty list.
    """
    return {"users": await user_service.search(user, query)}


@router.get("/profile/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    viewer: Optional[User] = Depends(get_optional_user),
    user_service: UserService = Depends(get_user_service)
):
    return {"user": await user_service.get_profile(username, viewer)}


@router.get("/{user_id}", response_model=UserDetailOut)
async def get_user_detail(
    user_id: UUID,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    return await user_service.get_user_detail(user_id)


@me_router.get("", response_model=UserOut)
async def get_own_account(user: User = Depends(get_current_user)):
    return user


@me_router.put("", response_model=UserOut)
async def update_own_account(
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    return await user_service.update_user(user, payload)


@me_router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_own_account(
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """Delete the caller's account with their events, attendance, photos and friendships."""
    await user_service.delete_user(user)


@me_router.get("/invitations", response_model=List[InvitationOut])
async def list_own_invitations(
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """Pending invitations of the caller, newest first."""
    return await rsvp_service.list_invitations(user.id)


@me_router.post("/image", response_model=ProfileImageResponse)
async def upload_profile_image(
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """
    Replace the caller's profile image with a JPEG, PNG, GIF or WebP of at most 5MB.

    The previous uploaded image, if any, is removed from storage.
    """
    user = await user_service.set_profile_image(user, image)
    return {"message": "Profile image updated successfully", "image": user.image, "user": user}


@me_router.delete("/image", response_model=ProfileImageResponse)
async def remove_profile_image(
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.remove_profile_image(user)
    return {"message": "Profile image removed successfully", "image": None, "user": user}
