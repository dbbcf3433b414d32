"""Repository implementations for infrastructure layer."""

from .notification_repository import (
    InsertResult,
    NotificationRepository,
    NotificationStoreError,
)

__all__ = [
    "InsertResult",
    "NotificationRepository",
    "NotificationStoreError",
]
