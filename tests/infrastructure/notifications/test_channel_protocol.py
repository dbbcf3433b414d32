"""Tests for the push channel buffer and the event-stream frame format."""

from __future__ import annotations

import pytest

from app.domain.entities import NotificationDraft, NotificationKind
from app.infrastructure.notifications import (
    ChannelClosedError,
    ChannelOverflowError,
    PushChannel,
    connected_frame,
    decode_frame,
    encode_frame,
    event_frame,
    heartbeat_frame,
)


def test_frames_are_encoded_as_single_data_blocks() -> None:
    chunk = encode_frame({"type": "like", "title": "New Like"})

    assert chunk.startswith("data: ")
    assert chunk.endswith("\n\n")
    assert chunk.count("\n") == 2
    assert decode_frame(chunk) == {"type": "like", "title": "New Like"}


def test_control_frames_follow_the_stream_contract() -> None:
    assert connected_frame() == {
        "type": "connected",
        "message": "Connected to notifications",
    }
    heartbeat = heartbeat_frame()
    assert heartbeat["type"] == "heartbeat"
    assert isinstance(heartbeat["timestamp"], int)


def test_event_frame_carries_kind_and_payload() -> None:
    draft = NotificationDraft(
        kind=NotificationKind.COMMENT,
        title="New Comment",
        message="Alice commented on your post",
        payload={"postId": "p-1"},
    )

    frame = event_frame(draft, notification_id="n-1")

    assert frame == {
        "type": "comment",
        "id": "n-1",
        "title": "New Comment",
        "message": "Alice commented on your post",
        "data": {"postId": "p-1"},
    }


def test_writes_to_a_closed_channel_fail() -> None:
    channel = PushChannel()
    channel.close()
    channel.close()

    with pytest.raises(ChannelClosedError):
        channel.write({"type": "like"})


def test_slow_consumers_overflow_instead_of_growing_without_bound() -> None:
    channel = PushChannel(max_pending=2)
    channel.write({"type": "heartbeat"})
    channel.write({"type": "heartbeat"})

    with pytest.raises(ChannelOverflowError):
        channel.write({"type": "like"})
    assert channel.pending == 2


@pytest.mark.anyio
async def test_frames_are_streamed_in_write_order_until_closed() -> None:
    channel = PushChannel()
    channel.write(connected_frame())
    channel.write({"type": "like", "title": "New Like"})
    channel.close()

    received = [decode_frame(chunk) async for chunk in channel.frames()]

    assert [frame["type"] for frame in received] == ["connected", "like"]
