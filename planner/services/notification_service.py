from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.exceptions import ForbiddenError, NotFoundError
from planner.core.logging import logger
from planner.db.models import Notification, NotificationType, PrivacyLevel
from planner.db.repositories import notifications as notification_repo
from planner.events import publisher


class NotificationService:
    """
    Persists user notifications and pushes them to connected clients.

    ``notify`` only stages the row; it is committed with the caller's
    transaction. ``dispatch`` publishes committed notifications to the
    message broker for realtime delivery.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def notify(
        self,
        user_id: UUID,
        message: str,
        source_type: NotificationType,
        link: Optional[str] = None,
        attendee_id: Optional[UUID] = None,
        friend_request_id: Optional[UUID] = None,
    ) -> Notification:
        return await notification_repo.add_notification(
            self.session,
            user_id=user_id,
            message=message,
            source_type=source_type,
            link=link,
            attendee_id=attendee_id,
            friend_request_id=friend_request_id,
        )

    async def notify_invitation(
        self,
        user_id: UUID,
        attendee_id: UUID,
        event_id: UUID,
        event_name: str,
        host_name: str,
        privacy_level: PrivacyLevel,
    ) -> Notification:
        if privacy_level == PrivacyLevel.PRIVATE:
            message = f"{host_name} invited you to a private event: {event_name}"
            source_type = NotificationType.PRIVATE_INVITATION
        else:
            message = f"{host_name} invited you to {event_name}"
            source_type = NotificationType.ATTENDEE
        return await self.notify(
            user_id,
            message,
            source_type,
            link=f"/events/{event_id}",
            attendee_id=attendee_id,
        )

    async def dispatch(self, notifications: List[Notification]) -> None:
        """
        Publish committed notifications for realtime delivery.

        Broker failures are logged; the notification rows are already stored
        and remain readable through the API.
        """
        for n in notifications:
            payload = {
                "type": "notification.created",
                "notification_id": str(n.id),
                "user_id": str(n.user_id),
                "message": n.message,
                "link": n.link,
                "source_type": n.source_type.value,
            }
            try:
                await publisher.publish_event("notification.created", payload)
            except Exception as e:
                logger.error(f"Failed to publish notification {n.id}: {e}")

    async def list_for_user(
        self,
        user_id: UUID,
        read: Optional[bool] = None,
        types: Optional[List[NotificationType]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Notification]:
        return await notification_repo.list_notifications(
            self.session, user_id, read=read, types=types, limit=limit, offset=offset
        )

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await notification_repo.get_notification(self.session, notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise ForbiddenError("You cannot modify this notification")
        return await notification_repo.mark_read(self.session, notification)

    async def mark_all_read(self, user_id: UUID) -> int:
        return await notification_repo.mark_all_read(self.session, user_id)
