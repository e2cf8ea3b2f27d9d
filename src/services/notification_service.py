from typing import Optional, List, Dict, Any
import uuid
from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.models.behavior_models import Notification, NotificationDeliveryLog, Profile
from src.schemas.behavior_schemas import NotificationSendRequest
from src.utils.custom_utils import utcnow
from src.utils.logging.activity_logger import logger_instance as activity_logger


def delivery_allowed(preferences: Optional[Dict[str, Any]], method: str, notification_type: str) -> bool:
    """
    Whether a notification may go out by a delivery method.

    Only an explicit False for `{method}_{type}s` (e.g. `email_incidents`)
    opts the recipient out; missing preferences allow delivery.
    """
    return (preferences or {}).get(f"{method}_{notification_type}s") is not False


class NotificationService:
    """
    Service for handling notification-related operations
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def send_notification(self, notification_data: NotificationSendRequest) -> Notification:
        """
        Create a notification and deliver it by each requested method

        Every allowed method gets a delivery log row, written as pending and
        marked sent once delivered.

        Args:
            notification_data: Recipient, message and delivery methods

        Returns:
            Created notification with its delivery logs

        Raises:
            HTTPException: If the recipient does not exist
        """
        recipient = await self.db.get(Profile, notification_data.user_id)
        if not recipient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Recipient not found"
            )

        notification = Notification(
            user_id=recipient.id,
            type=notification_data.type,
            message=notification_data.message,
            reference_id=notification_data.reference_id,
            reference_type=notification_data.reference_type,
            is_read=False
        )
        self.db.add(notification)
        await self.db.flush()

        delivered = []
        skipped = []
        for method in notification_data.delivery_methods:
            method = method.value
            if not delivery_allowed(recipient.notification_preferences, method, notification.type):
                skipped.append(method)
                continue

            delivery = NotificationDeliveryLog(
                notification_id=notification.id,
                delivery_method=method,
                delivery_status="pending"
            )
            self.db.add(delivery)
            await self.db.flush()

            delivery.delivery_status = "sent"
            delivery.delivered_at = utcnow()
            delivered.append(method)

        await self.db.commit()

        await activity_logger.log_activity(
            f"Notification '{notification.type}' sent to {recipient.name}"
            f" via {', '.join(delivered) or 'no channel'}",
            user_id=str(recipient.id),
            activity_type="notification_sent",
            metadata={
                "notification_id": str(notification.id),
                "delivered": delivered,
                "skipped": skipped
            }
        )
        return await self.get_notification(notification.id)

    async def get_notification(self, notification_id: uuid.UUID) -> Notification:
        result = await self.db.execute(
            select(Notification)
            .options(selectinload(Notification.deliveries))
            .where(Notification.id == notification_id)
            .execution_options(populate_existing=True)
        )
        notification = result.scalars().first()

        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )
        return notification

    async def get_user_notifications(
        self, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> List[Notification]:
        """
        Get notifications for a user, latest first

        Args:
            user_id: User ID
            unread_only: Only return unread notifications
            limit: Maximum number of notifications to return
            offset: Offset for pagination

        Returns:
            List of notifications
        """
        query = select(Notification).where(Notification.user_id == user_id)

        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        query = (
            query
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .offset(offset)
        )

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_unread_notification_count(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False)
            )
        )
        return result.scalar() or 0

    async def mark_notification_as_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> Notification:
        """
        Mark a notification as read

        Raises:
            HTTPException: If the notification does not belong to the user
        """
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
        notification = result.scalars().first()
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )

        if not notification.is_read:
            notification.is_read = True
            await self.db.commit()
            await self.db.refresh(notification)

            await activity_logger.log_activity(
                f"Notification {notification.id} read",
                user_id=str(user_id),
                activity_type="notification_read",
                metadata={"notification_id": str(notification_id)}
            )

        return notification
