# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from hrms.api.deps import AdminDep, AuthDep, get_auth_context
from hrms.db import SessionDep
from hrms.schemas.common import ApiResponse
from hrms.schemas.notification import (
    BulkNotificationRequest,
    CreateNotificationRequest,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from hrms.services import notification as notification_service

router = APIRouter(
    prefix="/api/notifications",
    tags=["notifications"],
    dependencies=[Depends(get_auth_context)],
)


@router.get("/my-notifications", response_model=ApiResponse[NotificationListResponse])
async def get_my_notifications(
    session: SessionDep,
    auth: AuthDep,
    limit: int = Query(default=50, ge=1, le=200),
    unread_only: bool = Query(default=False),
) -> ApiResponse[NotificationListResponse]:
    notifications = await notification_service.list_notifications(session, auth.recipient_id, limit, unread_only)
    return ApiResponse(data=notifications)


@router.get("/unread-count", response_model=ApiResponse[UnreadCountResponse])
async def get_unread_count(session: SessionDep, auth: AuthDep) -> ApiResponse[UnreadCountResponse]:
    return ApiResponse(data=await notification_service.get_unread_count(session, auth.recipient_id))


@router.put("/mark-all-read", response_model=ApiResponse[MarkAllReadResponse])
async def mark_all_as_read(session: SessionDep, auth: AuthDep) -> ApiResponse[MarkAllReadResponse]:
    result = await notification_service.mark_all_as_read(session, auth.recipient_id)
    return ApiResponse(message="All notifications marked as read", data=result)


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_as_read(
    notification_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ApiResponse[NotificationResponse]:
    notification = await notification_service.mark_as_read(session, auth.recipient_id, notification_id)
    return ApiResponse(message="Notification marked as read", data=notification)


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(notification_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> ApiResponse[None]:
    await notification_service.delete_notification(session, auth.recipient_id, notification_id)
    return ApiResponse(message="Notification deleted successfully")


@router.post("", response_model=ApiResponse[NotificationResponse], status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: CreateNotificationRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[NotificationResponse]:
    notification = await notification_service.create_notification(session, payload)
    return ApiResponse(message="Notification sent successfully", data=notification)


@router.post("/bulk", response_model=ApiResponse[list[NotificationResponse]], status_code=status.HTTP_201_CREATED)
async def create_bulk_notifications(
    payload: BulkNotificationRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApiResponse[list[NotificationResponse]]:
    notifications = await notification_service.create_bulk_notifications(session, payload)
    return ApiResponse(message=f"{len(notifications)} notifications sent successfully", data=notifications)
