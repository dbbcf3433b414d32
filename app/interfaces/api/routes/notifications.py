"""Endpoints and event stream for realtime notifications."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.entities import Notification
from app.infrastructure.database import get_db
from app.infrastructure.notifications import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    NotificationConnectionManager,
    PushChannel,
    connected_frame,
)
from app.infrastructure.repositories import NotificationRepository, NotificationStoreError
from app.interfaces.api.dependencies import (
    get_connection_manager,
    get_current_user_id,
    resolve_user_id,
)
from app.interfaces.api.schemas import (
    DataResponse,
    NotificationMarkReadRequest,
    NotificationRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        recipient_user_id=notification.recipient_user_id,
        kind=notification.kind.value,
        title=notification.title,
        message=notification.message,
        payload=notification.payload or {},
        read=notification.read,
        created_at=notification.created_at,
    )


def _store_unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


async def stream_notifications(
    manager: NotificationConnectionManager, user_id: str, channel: PushChannel
) -> AsyncIterator[str]:
    """Register ``channel`` for ``user_id`` and yield its frames until the client leaves.

    Nothing is registered until the response body starts streaming, so a client
    that goes away before that leaves no entry behind. The handshake frame is
    queued before the channel becomes visible to the registry.
    """

    channel.write(connected_frame())
    connection = manager.register(user_id, channel)
    try:
        async for chunk in channel.frames():
            yield chunk
    finally:
        manager.unregister(user_id, connection)


@router.get("", response_model=DataResponse[list[NotificationRead]])
def list_notifications(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[list[NotificationRead]]:
    """Return the most recent notifications for the authenticated user."""

    limit = get_settings().notification_list_limit
    try:
        notifications = NotificationRepository(db).list_for_user(user_id, limit=limit)
    except NotificationStoreError as exc:
        raise _store_unavailable("Failed to fetch notifications") from exc
    return DataResponse(data=[_notification_to_schema(item) for item in notifications])


@router.get("/unread-count", response_model=DataResponse[int])
def unread_count(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[int]:
    try:
        count = NotificationRepository(db).count_unread(user_id)
    except NotificationStoreError as exc:
        raise _store_unavailable("Failed to count notifications") from exc
    return DataResponse(data=count)


@router.get("/sse")
async def notifications_stream(
    token: str | None = Query(default=None),
    manager: NotificationConnectionManager = Depends(get_connection_manager),
) -> StreamingResponse:
    """Open the server-sent events channel for the user identified by ``token``.

    Browsers cannot attach headers to an ``EventSource`` so the token travels in
    the query string. It is verified once; an invalid token is rejected with 401
    before any frame is written.
    """

    user_id = resolve_user_id(token)
    channel = PushChannel(max_pending=get_settings().notification_channel_buffer)
    return StreamingResponse(
        stream_notifications(manager, user_id, channel),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )


@router.post("/mark-read", response_model=DataResponse[bool])
def mark_notification_as_read(
    request: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[bool]:
    try:
        NotificationRepository(db).mark_as_read(request.notification_id, user_id=user_id)
    except NotificationStoreError as exc:
        raise _store_unavailable("Failed to mark notification as read") from exc
    return DataResponse(data=True)


@router.post("/mark-all-read", response_model=DataResponse[bool])
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[bool]:
    try:
        NotificationRepository(db).mark_all_as_read(user_id)
    except NotificationStoreError as exc:
        raise _store_unavailable("Failed to mark all notifications as read") from exc
    return DataResponse(data=True)
