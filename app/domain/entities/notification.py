"""Domain entities describing user notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationKind(str, Enum):
    """Categories of social activity that produce a notification."""

    LIKE = "like"
    COMMENT = "comment"
    JOIN_REQUEST = "join_request"
    JOIN_APPROVED = "join_approved"
    JOIN_REJECTED = "join_rejected"
    NEW_EVENT = "new_event"
    POST = "post"
    INVITATION = "invitation"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(kind.value for kind in cls)


@dataclass(frozen=True)
class NotificationDraft:
    """Content shared by every recipient of a single fan-out call."""

    kind: NotificationKind
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: str
    recipient_user_id: str
    kind: NotificationKind
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    created_at: datetime | None = None


__all__ = ["Notification", "NotificationDraft", "NotificationKind"]
