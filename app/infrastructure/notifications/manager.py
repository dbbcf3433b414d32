"""Registry of live notification streams, one per user."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.utils import now_in_app_timezone

from .channel import ChannelWriteError, PushChannel
from .protocol import heartbeat_frame

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 30.0


@dataclass(eq=False)
class Connection:
    """A live push channel owned by ``user_id``."""

    user_id: str
    channel: PushChannel
    loop: asyncio.AbstractEventLoop
    connected_at: datetime = field(default_factory=now_in_app_timezone)
    heartbeat: asyncio.Task[None] | None = None

    def cancel_heartbeat(self) -> None:
        task, self.heartbeat = self.heartbeat, None
        if task is None or task.done():
            return
        if _running_loop() is self.loop:
            if task is not asyncio.current_task():
                task.cancel()
        else:
            self.loop.call_soon_threadsafe(task.cancel)

    def close_channel(self) -> None:
        """Close the channel on the loop that drains it."""

        if self.on_owner_loop() or self.loop.is_closed():
            self.channel.close()
        else:
            self.loop.call_soon_threadsafe(self.channel.close)

    def on_owner_loop(self) -> bool:
        return _running_loop() is self.loop


class NotificationConnectionManager:
    """Track the single live push channel of every connected user.

    Registering a second channel for a user supersedes the first one: its
    heartbeat is cancelled and its channel closed before the new connection
    becomes visible. Removal always cancels the heartbeat before the entry
    disappears, and the heartbeat re-checks registration before every write,
    so no heartbeat reaches a channel after it left the registry.
    """

    def __init__(self, *, heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL) -> None:
        self._connections: dict[str, Connection] = {}
        self._lock = threading.Lock()
        self._heartbeat_interval = heartbeat_interval

    @property
    def heartbeat_interval(self) -> float:
        return self._heartbeat_interval

    def register(self, user_id: str, channel: PushChannel) -> Connection:
        """Store ``channel`` as the live connection for ``user_id``.

        Must be called from the event loop that serves the stream; the
        heartbeat task is scheduled on it.
        """

        loop = asyncio.get_running_loop()
        connection = Connection(user_id=user_id, channel=channel, loop=loop)
        with self._lock:
            previous = self._connections.pop(user_id, None)
            if previous is not None:
                previous.cancel_heartbeat()
            self._connections[user_id] = connection
            connection.heartbeat = loop.create_task(
                self._run_heartbeat(connection),
                name=f"notification-heartbeat-{user_id}",
            )
            active = len(self._connections)

        if previous is not None:
            previous.close_channel()
            logger.info("Superseded notification stream for user %s", user_id)
        logger.info(
            "Notification stream opened for user %s (%d active)", user_id, active
        )
        return connection

    def unregister(self, user_id: str, connection: Connection | None = None) -> bool:
        """Remove the live connection of ``user_id``. Safe to call repeatedly.

        When ``connection`` is given only that exact connection is removed, so a
        superseded stream finishing late never evicts its replacement.
        """

        with self._lock:
            current = self._connections.get(user_id)
            removed: Connection | None = None
            if current is not None and (connection is None or current is connection):
                current.cancel_heartbeat()
                del self._connections[user_id]
                removed = current

        if connection is not None and connection is not removed:
            connection.cancel_heartbeat()
            connection.close_channel()
        if removed is None:
            return False

        removed.close_channel()
        logger.info("Notification stream closed for user %s", user_id)
        return True

    def lookup(self, user_id: str) -> Connection | None:
        with self._lock:
            return self._connections.get(user_id)

    def is_live(self, user_id: str) -> bool:
        return self.lookup(user_id) is not None

    def active_user_ids(self) -> list[str]:
        with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def send_to_user(self, user_id: str, message: dict[str, Any]) -> bool:
        """Write ``message`` to the live channel of ``user_id``.

        Returns ``False`` when the user is offline or the write failed; a failed
        write disconnects the user immediately. Calls made outside the owning
        event loop are handed over to it and report ``True`` once scheduled.
        """

        connection = self.lookup(user_id)
        if connection is None:
            return False
        if not connection.on_owner_loop():
            connection.loop.call_soon_threadsafe(self._write, connection, message)
            return True
        return self._write(connection, message)

    def close_all(self) -> None:
        """Disconnect every user, used when the application shuts down."""

        for user_id in self.active_user_ids():
            self.unregister(user_id)

    def _write(self, connection: Connection, message: dict[str, Any]) -> bool:
        if self.lookup(connection.user_id) is not connection:
            return False
        try:
            connection.channel.write(message)
        except ChannelWriteError as exc:
            logger.warning(
                "Dropping notification stream for user %s: %s", connection.user_id, exc
            )
            self.unregister(connection.user_id, connection)
            return False
        return True

    async def _run_heartbeat(self, connection: Connection) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            if not self._write(connection, heartbeat_frame()):
                return


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


__all__ = [
    "Connection",
    "DEFAULT_HEARTBEAT_INTERVAL",
    "NotificationConnectionManager",
]
