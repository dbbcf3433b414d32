"""Buffered output stream backing one server-sent events connection."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from .protocol import encode_frame

DEFAULT_MAX_PENDING = 100


class ChannelWriteError(RuntimeError):
    """Raised when a frame cannot be written to a push channel."""


class ChannelClosedError(ChannelWriteError):
    """The channel was closed before the write."""


class ChannelOverflowError(ChannelWriteError):
    """The client stopped reading and too many frames are pending."""


class PushChannel:
    """Ordered frame buffer drained by the streaming HTTP response.

    Writes never block: frames are queued in order and the response body
    generator pulls them out with :meth:`frames`. Writes must happen on the
    event loop thread that owns the response.
    """

    _CLOSE = object()

    def __init__(self, *, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._max_pending = max_pending
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def write(self, frame: dict[str, Any]) -> None:
        """Queue ``frame`` for delivery or raise :class:`ChannelWriteError`."""

        if self._closed:
            raise ChannelClosedError("Push channel is closed")
        if self._queue.qsize() >= self._max_pending:
            raise ChannelOverflowError(
                f"Push channel has {self._max_pending} undelivered frames"
            )
        self._queue.put_nowait(encode_frame(frame))

    def close(self) -> None:
        """Stop accepting writes and end :meth:`frames` once drained. Idempotent."""

        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(self._CLOSE)

    async def frames(self) -> AsyncIterator[str]:
        """Yield encoded frames in write order until the channel is closed."""

        while True:
            chunk = await self._queue.get()
            if chunk is self._CLOSE:
                return
            yield chunk


__all__ = [
    "ChannelClosedError",
    "ChannelOverflowError",
    "ChannelWriteError",
    "DEFAULT_MAX_PENDING",
    "PushChannel",
]
