"""Tests for the notifications emitted after social actions."""

from __future__ import annotations

import pytest

from app.application.use_cases.notifications import (
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
from app.domain.entities import NotificationKind
from app.infrastructure.database import SessionLocal
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationDispatcher,
    PushChannel,
    decode_frame,
)
from app.infrastructure.repositories import NotificationRepository


class RecordingDispatcher:
    """Dispatcher double that remembers every fan-out call."""

    def __init__(self, *, error: Exception | None = None) -> None:
        self.calls = []
        self.error = error

    def send_to_users(self, user_ids, notification):
        if self.error is not None:
            raise self.error
        self.calls.append((list(user_ids), notification))
        return None


@pytest.fixture()
def recorder() -> RecordingDispatcher:
    return RecordingDispatcher()


def test_like_notifies_the_post_author(recorder) -> None:
    notify_post_liked(
        recorder,
        post_author_id="bob",
        actor_id="alice",
        actor_name="Alice",
        post_id="p-1",
        like_id="l-1",
    )

    [(recipients, draft)] = recorder.calls
    assert recipients == ["bob"]
    assert draft.kind is NotificationKind.LIKE
    assert draft.title == "New Like"
    assert draft.message == "Alice liked your post"
    assert draft.payload == {"likeId": "l-1", "postId": "p-1", "userId": "alice"}


def test_liking_your_own_post_sends_nothing(recorder) -> None:
    result = notify_post_liked(
        recorder, post_author_id="bob", actor_id="bob", actor_name="Bob", post_id="p-1"
    )

    assert result is None
    assert recorder.calls == []


def test_anonymous_actor_falls_back_to_someone(recorder) -> None:
    notify_comment_created(
        recorder,
        post_author_id="bob",
        actor_id="alice",
        actor_name=None,
        post_id="p-1",
        comment_id="c-1",
    )

    [(_, draft)] = recorder.calls
    assert draft.kind is NotificationKind.COMMENT
    assert draft.message == "Someone commented on your post"


def test_join_request_reaches_every_admin_but_the_requester(recorder) -> None:
    notify_join_requested(
        recorder,
        admin_ids=["admin-1", "admin-2", "alice"],
        actor_id="alice",
        actor_name="Alice",
        society_id="s-1",
        society_name="Chess Club",
        request_id="r-1",
    )

    [(recipients, draft)] = recorder.calls
    assert recipients == ["admin-1", "admin-2"]
    assert draft.kind is NotificationKind.JOIN_REQUEST
    assert draft.message == "Alice wants to join Chess Club"


@pytest.mark.parametrize(
    ("notify", "kind", "title"),
    [
        (notify_join_approved, NotificationKind.JOIN_APPROVED, "Join Request Approved"),
        (notify_join_rejected, NotificationKind.JOIN_REJECTED, "Join Request Rejected"),
    ],
)
def test_join_decisions_notify_the_requester(recorder, notify, kind, title) -> None:
    notify(recorder, requester_id="alice", society_id="s-1", society_name="Chess Club", request_id="r-1")

    [(recipients, draft)] = recorder.calls
    assert recipients == ["alice"]
    assert draft.kind is kind
    assert draft.title == title
    assert draft.payload == {"requestId": "r-1", "societyId": "s-1"}


def test_society_wide_notifications_skip_the_author(recorder) -> None:
    members = ["alice", "bob", "carol"]
    notify_event_created(
        recorder,
        member_ids=members,
        actor_id="alice",
        actor_name="Alice",
        society_id="s-1",
        society_name="Chess Club",
        event_id="e-1",
        event_title="Blitz Night",
    )
    notify_post_created(
        recorder,
        member_ids=members,
        actor_id="alice",
        actor_name="Alice",
        society_id="s-1",
        society_name="Chess Club",
        post_id="p-9",
    )

    [(event_recipients, event_draft), (post_recipients, post_draft)] = recorder.calls
    assert event_recipients == post_recipients == ["bob", "carol"]
    assert event_draft.kind is NotificationKind.NEW_EVENT
    assert event_draft.message == 'Alice created a new event: "Blitz Night" in Chess Club'
    assert post_draft.kind is NotificationKind.POST


def test_invitation_and_ownership_transfer(recorder) -> None:
    notify_invitation_sent(
        recorder,
        invitee_id="bob",
        inviter_id="alice",
        society_id="s-1",
        society_name="Chess Club",
        invite_id="inv-1",
    )
    notify_ownership_transferred(
        recorder,
        new_owner_id="bob",
        previous_owner_id="alice",
        society_id="s-1",
        society_name="Chess Club",
    )

    [(_, invitation), (_, transfer)] = recorder.calls
    assert invitation.kind is NotificationKind.INVITATION
    assert invitation.message == "You have been invited to join Chess Club society"
    assert transfer.kind is NotificationKind.OWNERSHIP_TRANSFERRED
    assert transfer.message == "You are now the owner of Chess Club"


def test_dispatch_failures_never_reach_the_caller() -> None:
    failing = RecordingDispatcher(error=RuntimeError("registry exploded"))

    result = notify_post_liked(
        failing, post_author_id="bob", actor_id="alice", actor_name="Alice", post_id="p-1"
    )

    assert result is None


@pytest.mark.anyio
async def test_liking_a_post_notifies_a_connected_author() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    dispatcher = NotificationDispatcher(SessionLocal, manager)
    channel = PushChannel()
    manager.register("bob", channel)

    notify_post_liked(
        dispatcher,
        post_author_id="bob",
        actor_id="alice",
        actor_name="Alice",
        post_id="p-1",
        like_id="l-1",
    )

    with SessionLocal() as session:
        [row] = NotificationRepository(session).list_for_user("bob")
    assert row.kind is NotificationKind.LIKE
    assert row.read is False

    channel.close()
    frames = [decode_frame(chunk) async for chunk in channel.frames()]
    assert len(frames) == 1
    assert frames[0]["type"] == "like"
    assert frames[0]["title"] == "New Like"


def test_cancelled_invitation_notifications_are_retracted() -> None:
    dispatcher = NotificationDispatcher(
        SessionLocal, NotificationConnectionManager(heartbeat_interval=60)
    )
    notify_invitation_sent(
        dispatcher,
        invitee_id="bob",
        inviter_id="alice",
        society_id="s-1",
        society_name="Chess Club",
        invite_id="inv-1",
    )

    with SessionLocal() as session:
        assert retract_invitation_notifications(session, invite_id="inv-1") == 1
        assert NotificationRepository(session).list_for_user("bob") == []
