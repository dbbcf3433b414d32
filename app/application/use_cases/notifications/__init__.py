"""Public helpers for emitting social notifications."""

from .events import (
    notify_comment_created,
    notify_event_created,
    notify_invitation_sent,
    notify_join_approved,
    notify_join_rejected,
    notify_join_requested,
    notify_ownership_transferred,
    notify_post_created,
    notify_post_liked,
    retract_invitation_notifications,
)

__all__ = [
    "notify_comment_created",
    "notify_event_created",
    "notify_invitation_sent",
    "notify_join_approved",
    "notify_join_rejected",
    "notify_join_requested",
    "notify_ownership_transferred",
    "notify_post_created",
    "notify_post_liked",
    "retract_invitation_notifications",
]
