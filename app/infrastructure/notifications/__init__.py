"""Realtime notification helpers for the infrastructure layer."""

from .channel import (
    ChannelClosedError,
    ChannelOverflowError,
    ChannelWriteError,
    PushChannel,
)
from .dispatcher import DispatchReport, NotificationDispatcher
from .manager import Connection, NotificationConnectionManager
from .protocol import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    connected_frame,
    decode_frame,
    encode_frame,
    event_frame,
    heartbeat_frame,
    notification_frame,
)

__all__ = [
    "ChannelClosedError",
    "ChannelOverflowError",
    "ChannelWriteError",
    "Connection",
    "DispatchReport",
    "NotificationConnectionManager",
    "NotificationDispatcher",
    "PushChannel",
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "connected_frame",
    "decode_frame",
    "encode_frame",
    "event_frame",
    "heartbeat_frame",
    "notification_frame",
]
