"""Tests for the per-user registry of live notification streams."""

from __future__ import annotations

import asyncio

import anyio
import pytest

from app.infrastructure.notifications import (
    NotificationConnectionManager,
    PushChannel,
    decode_frame,
)

pytestmark = pytest.mark.anyio


async def _drain(channel: PushChannel) -> list[dict]:
    """Close ``channel`` and return every frame it still buffers."""

    channel.close()
    return [decode_frame(chunk) async for chunk in channel.frames()]


async def test_register_and_unregister_track_liveness() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    channel = PushChannel()

    connection = manager.register("bob", channel)

    assert manager.is_live("bob")
    assert manager.lookup("bob") is connection
    assert manager.active_user_ids() == ["bob"]
    assert manager.unregister("bob") is True
    assert not manager.is_live("bob")
    assert manager.lookup("bob") is None
    assert channel.closed
    assert len(manager) == 0


async def test_unregister_is_idempotent() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    manager.register("bob", PushChannel())

    assert manager.unregister("bob") is True
    assert manager.unregister("bob") is False
    assert manager.unregister("nobody") is False


async def test_second_registration_supersedes_the_first() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    first_channel, second_channel = PushChannel(), PushChannel()
    first = manager.register("bob", first_channel)
    first_heartbeat = first.heartbeat

    second = manager.register("bob", second_channel)
    await asyncio.sleep(0)

    assert manager.lookup("bob") is second
    assert first_channel.closed
    assert first_heartbeat.cancelled()
    assert manager.send_to_user("bob", {"type": "like"}) is True
    assert await _drain(first_channel) == []
    assert await _drain(second_channel) == [{"type": "like"}]


async def test_late_cleanup_of_superseded_stream_keeps_the_new_one() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    first = manager.register("bob", PushChannel())
    second = manager.register("bob", PushChannel())

    assert manager.unregister("bob", first) is False
    assert manager.lookup("bob") is second


async def test_heartbeats_are_written_while_registered() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=0.01)
    channel = PushChannel()
    manager.register("bob", channel)

    await asyncio.sleep(0.05)
    manager.unregister("bob")

    frames = await _drain(channel)
    assert len(frames) >= 2
    assert {frame["type"] for frame in frames} == {"heartbeat"}


async def test_heartbeats_stop_once_unregistered() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=0.01)
    channel = PushChannel()
    connection = manager.register("bob", channel)
    heartbeat = connection.heartbeat

    manager.unregister("bob")
    pending_after_removal = channel.pending
    await asyncio.sleep(0.05)

    assert heartbeat.cancelled()
    assert connection.heartbeat is None
    assert channel.pending == pending_after_removal


async def test_failed_write_disconnects_the_user() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    channel = PushChannel(max_pending=1)
    manager.register("bob", channel)

    assert manager.send_to_user("bob", {"type": "like"}) is True
    assert manager.send_to_user("bob", {"type": "comment"}) is False
    assert not manager.is_live("bob")
    assert channel.closed


async def test_failed_heartbeat_disconnects_the_user() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=0.01)
    manager.register("bob", PushChannel(max_pending=1))

    await asyncio.sleep(0.05)

    assert not manager.is_live("bob")


async def test_send_to_offline_user_writes_nothing() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    channel = PushChannel()
    manager.register("bob", channel)

    assert manager.send_to_user("carol", {"type": "like"}) is False
    assert channel.pending == 0


async def test_writes_from_worker_threads_are_handed_to_the_loop() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    channel = PushChannel()
    manager.register("bob", channel)

    scheduled = await anyio.to_thread.run_sync(
        manager.send_to_user, "bob", {"type": "like"}
    )
    await asyncio.sleep(0)

    assert scheduled is True
    assert channel.pending == 1


async def test_close_all_disconnects_everyone() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    channels = [PushChannel(), PushChannel()]
    manager.register("bob", channels[0])
    manager.register("carol", channels[1])

    manager.close_all()

    assert len(manager) == 0
    assert all(channel.closed for channel in channels)


async def test_unregister_from_worker_thread_closes_the_channel_on_its_loop() -> None:
    manager = NotificationConnectionManager(heartbeat_interval=60)
    channel = PushChannel()
    connection = manager.register("bob", channel)
    heartbeat = connection.heartbeat

    removed = await anyio.to_thread.run_sync(manager.unregister, "bob")
    await asyncio.sleep(0.01)

    assert removed is True
    assert channel.closed
    assert heartbeat.cancelled()
    assert await _drain(channel) == []
