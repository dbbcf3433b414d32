"""API schemas."""

from .notification import DataResponse, NotificationMarkReadRequest, NotificationRead

__all__ = ["DataResponse", "NotificationMarkReadRequest", "NotificationRead"]
