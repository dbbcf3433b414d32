"""Notifications emitted after social actions complete.

Every helper runs once the primary action has been committed. Recipient
selection happens here (the actor never notifies themselves) and any
failure is logged and swallowed so liking, commenting or joining never
fails because a notification could not be delivered.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.domain.entities import NotificationDraft, NotificationKind
from app.infrastructure.notifications import DispatchReport, NotificationDispatcher
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

_SOMEONE = "Someone"


def _dispatch(
    dispatcher: NotificationDispatcher,
    recipients: Iterable[Any],
    draft: NotificationDraft,
    *,
    actor_id: Any = None,
) -> DispatchReport | None:
    excluded = str(actor_id) if actor_id is not None else None
    targets = [
        recipient
        for recipient in recipients
        if recipient is not None and str(recipient) != excluded
    ]
    if not targets:
        return None
    try:
        return dispatcher.send_to_users(targets, draft)
    except Exception:
        logger.exception("Failed to dispatch %s notification", draft.kind.value)
        return None


def notify_post_liked(
    dispatcher: NotificationDispatcher,
    *,
    post_author_id: Any,
    actor_id: Any,
    actor_name: str | None,
    post_id: Any,
    like_id: Any = None,
) -> DispatchReport | None:
    """Tell the author of a post that someone liked it."""

    draft = NotificationDraft(
        kind=NotificationKind.LIKE,
        title="New Like",
        message=f"{actor_name or _SOMEONE} liked your post",
        payload={"likeId": like_id, "postId": post_id, "userId": actor_id},
    )
    return _dispatch(dispatcher, [post_author_id], draft, actor_id=actor_id)


def notify_comment_created(
    dispatcher: NotificationDispatcher,
    *,
    post_author_id: Any,
    actor_id: Any,
    actor_name: str | None,
    post_id: Any,
    comment_id: Any,
) -> DispatchReport | None:
    draft = NotificationDraft(
        kind=NotificationKind.COMMENT,
        title="New Comment",
        message=f"{actor_name or _SOMEONE} commented on your post",
        payload={"commentId": comment_id, "postId": post_id, "userId": actor_id},
    )
    return _dispatch(dispatcher, [post_author_id], draft, actor_id=actor_id)


def notify_post_created(
    dispatcher: NotificationDispatcher,
    *,
    member_ids: Iterable[Any],
    actor_id: Any,
    actor_name: str | None,
    society_id: Any,
    society_name: str | None,
    post_id: Any,
) -> DispatchReport | None:
    """Tell society members that a new post was published."""

    draft = NotificationDraft(
        kind=NotificationKind.POST,
        title="New Post",
        message=(
            f"{actor_name or _SOMEONE} shared a new post in "
            f"{society_name or 'your society'}"
        ),
        payload={"postId": post_id, "societyId": society_id, "userId": actor_id},
    )
    return _dispatch(dispatcher, member_ids, draft, actor_id=actor_id)


def notify_join_requested(
    dispatcher: NotificationDispatcher,
    *,
    admin_ids: Iterable[Any],
    actor_id: Any,
    actor_name: str | None,
    society_id: Any,
    society_name: str | None,
    request_id: Any,
) -> DispatchReport | None:
    """Tell the society admins that a user asked to join."""

    draft = NotificationDraft(
        kind=NotificationKind.JOIN_REQUEST,
        title="New Join Request",
        message=(
            f"{actor_name or _SOMEONE} wants to join {society_name or 'your society'}"
        ),
        payload={"requestId": request_id, "societyId": society_id, "userId": actor_id},
    )
    return _dispatch(dispatcher, admin_ids, draft, actor_id=actor_id)


def notify_join_approved(
    dispatcher: NotificationDispatcher,
    *,
    requester_id: Any,
    society_id: Any,
    society_name: str | None,
    request_id: Any,
) -> DispatchReport | None:
    draft = NotificationDraft(
        kind=NotificationKind.JOIN_APPROVED,
        title="Join Request Approved",
        message=(
            f"Your request to join {society_name or 'the society'} has been approved!"
        ),
        payload={"requestId": request_id, "societyId": society_id},
    )
    return _dispatch(dispatcher, [requester_id], draft)


def notify_join_rejected(
    dispatcher: NotificationDispatcher,
    *,
    requester_id: Any,
    society_id: Any,
    society_name: str | None,
    request_id: Any,
) -> DispatchReport | None:
    draft = NotificationDraft(
        kind=NotificationKind.JOIN_REJECTED,
        title="Join Request Rejected",
        message=(
            f"Your request to join {society_name or 'the society'} has been rejected."
        ),
        payload={"requestId": request_id, "societyId": society_id},
    )
    return _dispatch(dispatcher, [requester_id], draft)


def notify_invitation_sent(
    dispatcher: NotificationDispatcher,
    *,
    invitee_id: Any,
    inviter_id: Any,
    society_id: Any,
    society_name: str,
    invite_id: Any,
) -> DispatchReport | None:
    draft = NotificationDraft(
        kind=NotificationKind.INVITATION,
        title="Society Invitation",
        message=f"You have been invited to join {society_name} society",
        payload={"inviteId": invite_id, "societyId": society_id, "inviterId": inviter_id},
    )
    return _dispatch(dispatcher, [invitee_id], draft, actor_id=inviter_id)


def notify_event_created(
    dispatcher: NotificationDispatcher,
    *,
    member_ids: Iterable[Any],
    actor_id: Any,
    actor_name: str | None,
    society_id: Any,
    society_name: str | None,
    event_id: Any,
    event_title: str,
) -> DispatchReport | None:
    """Tell society members about a newly scheduled event."""

    draft = NotificationDraft(
        kind=NotificationKind.NEW_EVENT,
        title="New Event Created",
        message=(
            f'{actor_name or _SOMEONE} created a new event: "{event_title}" '
            f"in {society_name or 'your society'}"
        ),
        payload={"eventId": event_id, "societyId": society_id, "userId": actor_id},
    )
    return _dispatch(dispatcher, member_ids, draft, actor_id=actor_id)


def notify_ownership_transferred(
    dispatcher: NotificationDispatcher,
    *,
    new_owner_id: Any,
    previous_owner_id: Any,
    society_id: Any,
    society_name: str,
) -> DispatchReport | None:
    draft = NotificationDraft(
        kind=NotificationKind.OWNERSHIP_TRANSFERRED,
        title="Society Ownership Transferred",
        message=f"You are now the owner of {society_name}",
        payload={"societyId": society_id, "previousOwnerId": previous_owner_id},
    )
    return _dispatch(dispatcher, [new_owner_id], draft, actor_id=previous_owner_id)


def retract_invitation_notifications(session: Session, *, invite_id: Any) -> int:
    """Remove the invitation notifications of a cancelled invite."""

    try:
        return NotificationRepository(session).delete_by_payload_ref(
            NotificationKind.INVITATION, "inviteId", invite_id
        )
    except Exception:
        logger.exception("Failed to retract notifications for invitation %s", invite_id)
        return 0


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
