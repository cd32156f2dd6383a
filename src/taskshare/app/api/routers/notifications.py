"""Routes for the notification inbox."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import CurrentUserDependency, NotificationServiceDependency
from ...schemas import MarkAllReadResponse, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead], summary="Newest notifications for the caller")
async def list_notifications(
    service: NotificationServiceDependency,
    current_user: CurrentUserDependency,
) -> list[NotificationRead]:
    return await service.list_inbox(current_user)


@router.put("/read-all", response_model=MarkAllReadResponse, summary="Mark every notification read")
async def mark_all_notifications_read(
    service: NotificationServiceDependency,
    current_user: CurrentUserDependency,
) -> MarkAllReadResponse:
    return await service.mark_all_read(current_user)


@router.put("/{notification_id}/read", response_model=NotificationRead, summary="Mark a notification read")
async def mark_notification_read(
    notification_id: str,
    service: NotificationServiceDependency,
    current_user: CurrentUserDependency,
) -> NotificationRead:
    return await service.mark_read(notification_id, current_user)
