from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from planner.core.logging import logger
from planner.db.models import FriendRequest, NotificationType, User
from planner.db.repositories import friends as friend_repo
from planner.db.repositories.users import get_user_by_username
from planner.schemas import FriendRequestOut, FriendsOut, UserSummary
from planner.services.notification_service import NotificationService


class FriendService:
    """
    Friend requests and friendships.

    A friendship is symmetric and stored as one canonical row per pair.
    Requests exist only while pending: accepting or declining removes them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notifications = NotificationService(session)

    async def list_friends(self, user_id: UUID) -> FriendsOut:
        friends = await friend_repo.list_friends(self.session, user_id)
        pending = await friend_repo.list_received_requests(self.session, user_id)
        return FriendsOut(
            friends=[UserSummary.model_validate(f) for f in friends],
            pending_requests=[FriendRequestOut.model_validate(r) for r in pending],
        )

    async def send_request(self, sender: User, username: str) -> FriendRequest:
        """
        Send a friend request to the user with ``username``.

        Raises:
            NotFoundError: If the username does not exist
            BadRequestError: If the target is the sender, already a friend, or a request is already pending
        """
        receiver = await get_user_by_username(self.session, username)
        if not receiver:
            raise NotFoundError("User not found")
        if receiver.id == sender.id:
            raise BadRequestError("You cannot send a friend request to yourself")
        if await friend_repo.are_friends(self.session, sender.id, receiver.id):
            raise BadRequestError("You are already friends with this user")
        if await friend_repo.find_request_between(self.session, sender.id, receiver.id):
            raise BadRequestError("A friend request already exists between you and this user")

        request = await friend_repo.create_friend_request(self.session, sender.id, receiver.id)
        notification = await self.notifications.notify(
            receiver.id,
            f"{sender.name or sender.username} sent you a friend request",
            NotificationType.FRIEND_REQUEST,
            link="/friends",
            friend_request_id=request.id,
        )
        await self.session.commit()
        await self.notifications.dispatch([notification])
        logger.info(f"User {sender.id} sent a friend request to {receiver.id}")
        return request

    async def respond(self, user: User, request_id: UUID, action: str) -> None:
        """
        Accept or decline a pending request addressed to ``user``.

        Accepting creates the friendship. Either way, every request between
        the two users is removed.
        """
        request = await friend_repo.get_friend_request(self.session, request_id)
        if not request:
            raise NotFoundError("Friend request not found")
        if request.receiver_id != user.id:
            raise ForbiddenError("You cannot respond to this friend request")
        if action not in ("accept", "decline"):
            raise BadRequestError("Invalid action")

        sender_id = request.sender_id
        staged = []
        if action == "accept":
            if not await friend_repo.are_friends(self.session, sender_id, user.id):
                await friend_repo.create_friendship(self.session, sender_id, user.id)
            staged.append(
                await self.notifications.notify(
                    sender_id,
                    f"{user.name or user.username} accepted your friend request",
                    NotificationType.FRIEND_REQUEST,
                    link=f"/profile/{user.username}",
                )
            )
        await friend_repo.delete_requests_between(self.session, sender_id, user.id)
        await self.session.commit()
        await self.notifications.dispatch(staged)
        logger.info(f"User {user.id} answered friend request {request_id}: {action}")

    async def remove_friend(self, user: User, friend_id: UUID) -> None:
        removed = await friend_repo.delete_friendship(self.session, user.id, friend_id)
        if not removed:
            raise NotFoundError("Friendship not found")
        logger.info(f"User {user.id} removed friend {friend_id}")
