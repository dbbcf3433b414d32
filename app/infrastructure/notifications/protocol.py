"""Frames exchanged over the server-sent events notification stream."""

from __future__ import annotations

import json
from typing import Any

from app.domain.entities import Notification, NotificationDraft
from app.utils import epoch_millis, json_default

CONNECTED_MESSAGE = "Connected to notifications"
FRAME_CONNECTED = "connected"
FRAME_HEARTBEAT = "heartbeat"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
SSE_MEDIA_TYPE = "text/event-stream"


def connected_frame() -> dict[str, Any]:
    """Return the control frame written right after the stream opens."""

    return {"type": FRAME_CONNECTED, "message": CONNECTED_MESSAGE}


def heartbeat_frame() -> dict[str, Any]:
    return {"type": FRAME_HEARTBEAT, "timestamp": epoch_millis()}


def event_frame(
    draft: NotificationDraft, *, notification_id: str | None = None
) -> dict[str, Any]:
    """Return the frame pushed to a live recipient for ``draft``."""

    frame: dict[str, Any] = {
        "type": draft.kind.value,
        "title": draft.title,
        "message": draft.message,
        "data": dict(draft.payload or {}),
    }
    if notification_id is not None:
        frame["id"] = notification_id
    return frame


def notification_frame(notification: Notification) -> dict[str, Any]:
    """Return the event frame describing a persisted ``notification``."""

    draft = NotificationDraft(
        kind=notification.kind,
        title=notification.title,
        message=notification.message,
        payload=notification.payload,
    )
    return event_frame(draft, notification_id=notification.id)


def encode_frame(frame: dict[str, Any]) -> str:
    """Serialize ``frame`` as one ``data:`` block of a ``text/event-stream``."""

    return f"data: {json.dumps(frame, default=json_default, separators=(',', ':'))}\n\n"


def decode_frame(chunk: str) -> dict[str, Any]:
    """Parse a chunk produced by :func:`encode_frame` back into a frame."""

    lines = [line[len("data:") :].strip() for line in chunk.splitlines() if line.startswith("data:")]
    if not lines:
        raise ValueError("Chunk does not contain a data field")
    return json.loads("\n".join(lines))


__all__ = [
    "CONNECTED_MESSAGE",
    "FRAME_CONNECTED",
    "FRAME_HEARTBEAT",
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "connected_frame",
    "decode_frame",
    "encode_frame",
    "event_frame",
    "heartbeat_frame",
    "notification_frame",
]
