"""In-app notifications and the event messages other services emit."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlmodel import col

from hrms.exceptions import NotFoundError
from hrms.models.enums import NotificationType
from hrms.models.notification import Notification
from hrms.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrms.schemas.notification import BulkNotificationRequest, CreateNotificationRequest


def _build_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        title=notification.title,
        message=notification.message,
        type=NotificationType(notification.type),
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


def add_notification(
    session: AsyncSession,
    user_id: uuid.UUID,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.GENERAL,
) -> Notification:
    """Stage a notification in the caller's transaction."""
    notification = Notification(user_id=user_id, title=title, message=message, type=notification_type.value)
    session.add(notification)
    return notification


# ---------------------------------------------------------------------------
# Event messages
# ---------------------------------------------------------------------------


def notify_review_created(
    session: AsyncSession,
    employee_id: uuid.UUID,
    period_start: date,
    period_end: date,
) -> Notification:
    return add_notification(
        session,
        employee_id,
        "Performance Review Created",
        "A new performance review has been created for the period "
        f"{period_start.isoformat()} to {period_end.isoformat()}",
    )


def notify_review_submitted(session: AsyncSession, reviewer_id: uuid.UUID) -> Notification:
    return add_notification(
        session,
        reviewer_id,
        "Performance Review Submitted",
        "A performance review has been submitted for your review",
    )


def notify_review_reviewed(session: AsyncSession, employee_id: uuid.UUID) -> Notification:
    return add_notification(
        session,
        employee_id,
        "Performance Review Completed",
        "Your performance review has been completed and is ready for your review",
    )


def notify_review_approved(session: AsyncSession, employee_id: uuid.UUID) -> Notification:
    return add_notification(
        session,
        employee_id,
        "Performance Review Approved",
        "Your performance review has been approved and finalized",
    )


def notify_document_uploaded(
    session: AsyncSession,
    employee_id: uuid.UUID,
    document_type: str,
    document_name: str,
) -> Notification:
    return add_notification(
        session,
        employee_id,
        "Document Uploaded",
        f'A new {document_type} document "{document_name}" has been uploaded to your profile.',
        NotificationType.DOCUMENT_UPLOADED,
    )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_notification(session: AsyncSession, payload: CreateNotificationRequest) -> NotificationResponse:
    notification = add_notification(session, payload.user_id, payload.title, payload.message, payload.type)
    await session.commit()
    await session.refresh(notification)
    return _build_notification_response(notification)


async def create_bulk_notifications(
    session: AsyncSession,
    payload: BulkNotificationRequest,
) -> list[NotificationResponse]:
    """Send one notification per distinct user id."""
    notifications = [
        add_notification(session, user_id, payload.title, payload.message, payload.type)
        for user_id in dict.fromkeys(payload.user_ids)
    ]
    await session.commit()
    for notification in notifications:
        await session.refresh(notification)
    return [_build_notification_response(n) for n in notifications]


async def get_unread_count(session: AsyncSession, user_id: uuid.UUID) -> UnreadCountResponse:
    result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(col(Notification.user_id) == user_id, col(Notification.is_read).is_(False))
    )
    return UnreadCountResponse(unread_count=result.scalar_one())


async def list_notifications(
    session: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 50,
    unread_only: bool = False,
) -> NotificationListResponse:
    """A user's notifications, newest first."""
    filters = [col(Notification.user_id) == user_id]
    if unread_only:
        filters.append(col(Notification.is_read).is_(False))

    count_result = await session.execute(select(func.count()).select_from(Notification).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Notification).where(*filters).order_by(col(Notification.created_at).desc()).limit(limit)
    )
    unread = await get_unread_count(session, user_id)
    return NotificationListResponse(
        items=[_build_notification_response(n) for n in result.scalars().all()],
        total=total,
        unread_count=unread.unread_count,
    )


async def _get_own_notification(
    session: AsyncSession,
    user_id: uuid.UUID,
    notification_id: uuid.UUID,
) -> Notification:
    result = await session.execute(
        select(Notification).where(col(Notification.id) == notification_id, col(Notification.user_id) == user_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


async def mark_as_read(
    session: AsyncSession,
    user_id: uuid.UUID,
    notification_id: uuid.UUID,
) -> NotificationResponse:
    notification = await _get_own_notification(session, user_id, notification_id)
    notification.is_read = True
    await session.commit()
    await session.refresh(notification)
    return _build_notification_response(notification)


async def mark_all_as_read(session: AsyncSession, user_id: uuid.UUID) -> MarkAllReadResponse:
    result = await session.execute(
        update(Notification)
        .where(col(Notification.user_id) == user_id, col(Notification.is_read).is_(False))
        .values(is_read=True)
    )
    await session.commit()
    return MarkAllReadResponse(updated_count=result.rowcount)


async def delete_notification(session: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID) -> None:
    notification = await _get_own_notification(session, user_id, notification_id)
    await session.delete(notification)
    await session.commit()
