from fastapi import APIRouter, Depends, status, Query
from typing import Dict, Any
import logging
import uuid

from src.schemas.behavior_schemas import (
    NotificationSendRequest,
    NotificationResponse,
    NotificationSentResponse
)
from src.services.notification_service import NotificationService
from src.services.service_factory import get_notification_service
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import route_error_response

router = APIRouter(prefix="/notifications", tags=["Notifications"])
logger = logging.getLogger(__name__)


@router.post("", response_model=Dict[str, Any])
async def send_notification(
    notification_data: NotificationSendRequest,
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Send a notification

    Each requested delivery method is skipped when the recipient has
    explicitly opted out of it for this notification type.
    """
    try:
        notification = await notification_service.send_notification(notification_data)

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Notification sent successfully",
            customer_message="Notification sent successfully",
            body=NotificationSentResponse.model_validate(notification).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to send notification", "Error sending notification")


@router.get("/users/{user_id}", response_model=Dict[str, Any])
async def get_user_notifications(
    user_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Get a user's notifications, latest first
    """
    try:
        notifications = await notification_service.get_user_notifications(user_id, unread_only, limit, offset)
        unread_count = await notification_service.get_unread_notification_count(user_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="User notifications retrieved successfully",
            customer_message="Notifications have been retrieved",
            body={
                "notifications": [NotificationResponse.model_validate(n).model_dump() for n in notifications],
                "unread_count": unread_count
            }
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve notifications", "Error retrieving notifications")


@router.patch("/users/{user_id}/{notification_id}/read", response_model=Dict[str, Any])
async def mark_notification_as_read(
    user_id: uuid.UUID,
    notification_id: uuid.UUID,
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Mark one of a user's notifications as read
    """
    try:
        notification = await notification_service.mark_notification_as_read(notification_id, user_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Notification marked as read",
            customer_message="Notification marked as read",
            body=NotificationResponse.model_validate(notification).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to update notification", "Error marking notification as read")
