"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Envelope used by every notification endpoint."""

    data: T


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a single notification as read."""

    model_config = ConfigDict(populate_by_name=True)

    notification_id: str = Field(
        ..., alias="notificationId", min_length=1, description="Notification identifier"
    )


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    recipient_user_id: str
    kind: str
    title: str
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: datetime | None = None


__all__ = ["DataResponse", "NotificationMarkReadRequest", "NotificationRead"]
