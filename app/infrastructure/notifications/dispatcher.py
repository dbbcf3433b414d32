"""Fan a notification out to the store and to live push channels."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from anyio import from_thread, to_thread
from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationDraft
from app.infrastructure.repositories import NotificationRepository, NotificationStoreError
from app.utils import now_in_app_timezone, to_json_payload

from .manager import NotificationConnectionManager
from .protocol import notification_frame

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """What happened to one :meth:`NotificationDispatcher.send_to_users` call."""

    recipients: list[str] = field(default_factory=list)
    persisted: list[str] = field(default_factory=list)
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    store_error: bool = False


class NotificationDispatcher:
    """Persist one notification per recipient and push it to live users.

    Persistence and live delivery are independent: a store outage still
    pushes frames to connected users, and a broken channel never prevents
    the rows from being written or other recipients from being reached.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        manager: NotificationConnectionManager,
    ) -> None:
        self._session_factory = session_factory
        self._manager = manager

    @property
    def manager(self) -> NotificationConnectionManager:
        return self._manager

    def send_to_users(
        self, user_ids: Iterable[Any], notification: NotificationDraft
    ) -> DispatchReport:
        """Persist and push ``notification`` for every user in ``user_ids``.

        The store write blocks the calling thread, so this is meant for worker
        threads (sync routes, scripts). Coroutines should await
        :meth:`send_to_users_async` instead.
        """

        records, report = self._prepare(user_ids, notification)
        if records:
            self._persist(records, report)
            self._push(records, report)
        return report

    async def send_to_users_async(
        self, user_ids: Iterable[Any], notification: NotificationDraft
    ) -> DispatchReport:
        """Same as :meth:`send_to_users` with the store write moved off the event loop."""

        records, report = self._prepare(user_ids, notification)
        if records:
            await to_thread.run_sync(self._persist, records, report)
            self._push(records, report)
        return report

    def _prepare(
        self, user_ids: Iterable[Any], notification: NotificationDraft
    ) -> tuple[list[Notification], DispatchReport]:
        recipients = _normalize_recipients(user_ids)
        report = DispatchReport(recipients=recipients)
        if not recipients:
            return [], report

        try:
            payload = to_json_payload(notification.payload)
        except (TypeError, ValueError):
            logger.error(
                "Payload of %s notification is not JSON serializable",
                notification.kind.value,
                exc_info=True,
            )
            payload = dict(notification.payload or {})

        created_at = now_in_app_timezone()
        records = [
            Notification(
                id=str(uuid.uuid4()),
                recipient_user_id=recipient,
                kind=notification.kind,
                title=notification.title,
                message=notification.message,
                payload=dict(payload),
                read=False,
                created_at=created_at,
            )
            for recipient in recipients
        ]
        return records, report

    def _push(self, records: list[Notification], report: DispatchReport) -> None:
        for record in records:
            try:
                delivered = self._deliver(
                    record.recipient_user_id, notification_frame(record)
                )
            except Exception:
                logger.exception(
                    "Failed to push %s notification to user %s",
                    record.kind.value,
                    record.recipient_user_id,
                )
                report.failed.append(record.recipient_user_id)
                continue
            if delivered:
                report.delivered.append(record.recipient_user_id)

        logger.debug(
            "Dispatched %s notification: %d recipients, %d stored, %d pushed",
            records[0].kind.value,
            len(report.recipients),
            len(report.persisted),
            len(report.delivered),
        )

    def _persist(self, records: list[Notification], report: DispatchReport) -> None:
        try:
            with self._session_factory() as session:
                result = NotificationRepository(session).insert_many(records)
        except NotificationStoreError:
            logger.error(
                "Notification store unavailable, %d notifications not persisted",
                len(records),
                exc_info=True,
            )
            report.store_error = True
            return
        except Exception:
            logger.exception("Unexpected error persisting %d notifications", len(records))
            report.store_error = True
            return

        report.persisted.extend(item.recipient_user_id for item in result.inserted)
        if result.partial:
            logger.warning(
                "Persisted %d of %d notifications",
                len(result.inserted),
                len(records),
            )

    def _deliver(self, user_id: str, frame: dict[str, Any]) -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            return self._manager.send_to_user(user_id, frame)

        try:
            return from_thread.run_sync(self._manager.send_to_user, user_id, frame)
        except RuntimeError:
            # Not an anyio worker thread: the registry hands the write to its loop.
            return self._manager.send_to_user(user_id, frame)


def _normalize_recipients(user_ids: Iterable[Any]) -> list[str]:
    """Return unique, non-empty recipient identifiers as strings, in order."""

    unique: list[str] = []
    for user_id in user_ids:
        if user_id is None:
            continue
        candidate = str(user_id).strip()
        if candidate and candidate not in unique:
            unique.append(candidate)
    return unique


__all__ = ["DispatchReport", "NotificationDispatcher"]
