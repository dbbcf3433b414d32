"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationKind
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
    to_json_payload,
)

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class NotificationStoreError(RuntimeError):
    """Raised when the notification store cannot be reached.

    The error is retryable: the request that triggered it can be repeated once
    the database is available again.
    """

    retryable = True


@dataclass
class InsertResult:
    """Outcome of :meth:`NotificationRepository.insert_many`."""

    inserted: list[Notification] = field(default_factory=list)
    failed: list[Notification] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed)


class NotificationRepository:
    """Provide persistence operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert_many(self, notifications: Iterable[Notification]) -> InsertResult:
        """Persist ``notifications`` skipping (and logging) the malformed ones."""

        result = InsertResult()
        valid: list[Notification] = []
        for notification in notifications:
            problem = _validation_problem(notification)
            if problem is not None:
                logger.warning(
                    "Skipping notification %s for user %r: %s",
                    notification.id,
                    notification.recipient_user_id,
                    problem,
                )
                result.failed.append(notification)
                continue
            valid.append(notification)

        if not valid:
            return result

        try:
            self.session.add_all([self._to_model(notification) for notification in valid])
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            if _is_unavailable(exc):
                raise NotificationStoreError("Notification store is unavailable") from exc
            logger.warning(
                "Bulk insert of %d notifications failed, retrying one by one",
                len(valid),
                exc_info=True,
            )
            self._insert_individually(valid, result)
        else:
            result.inserted.extend(valid)
        return result

    def _insert_individually(
        self, notifications: Sequence[Notification], result: InsertResult
    ) -> None:
        for notification in notifications:
            try:
                self.session.add(self._to_model(notification))
                self.session.commit()
            except SQLAlchemyError as exc:
                self.session.rollback()
                if _is_unavailable(exc):
                    raise NotificationStoreError(
                        "Notification store is unavailable"
                    ) from exc
                logger.error(
                    "Failed to persist notification %s for user %r",
                    notification.id,
                    notification.recipient_user_id,
                    exc_info=True,
                )
                result.failed.append(notification)
            else:
                result.inserted.append(notification)

    def get(self, notification_id: str) -> Notification | None:
        with self._store_errors():
            model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model is not None else None

    def list_for_user(
        self,
        user_id: str,
        *,
        limit: int | None = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.recipient_user_id == user_id)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        with self._store_errors():
            models = query.all()
        return [self._to_entity(model) for model in models]

    def list_unread_for_user(
        self, user_id: str, *, limit: int | None = DEFAULT_LIST_LIMIT
    ) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.recipient_user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
        )
        if limit is not None:
            query = query.limit(limit)
        with self._store_errors():
            models = query.all()
        return [self._to_entity(model) for model in models]

    def count_unread(self, user_id: str) -> int:
        with self._store_errors():
            return (
                self.session.query(NotificationModel)
                .filter(NotificationModel.recipient_user_id == user_id)
                .filter(NotificationModel.read.is_(False))
                .count()
            )

    def mark_as_read(self, notification_id: str, *, user_id: str) -> bool:
        """Flag one notification as read and report whether a row changed.

        The update is a single conditional statement so concurrent calls for
        the same row cannot both report a change.
        """

        with self._store_errors():
            changed = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.id == notification_id,
                    NotificationModel.recipient_user_id == user_id,
                    NotificationModel.read.is_(False),
                )
                .update({NotificationModel.read: True}, synchronize_session=False)
            )
            self.session.commit()
        return changed == 1

    def mark_all_as_read(self, user_id: str) -> int:
        with self._store_errors():
            changed = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.recipient_user_id == user_id,
                    NotificationModel.read.is_(False),
                )
                .update({NotificationModel.read: True}, synchronize_session=False)
            )
            self.session.commit()
        return changed

    def delete_by_payload_ref(
        self, kind: NotificationKind | str, key: str, value: Any
    ) -> int:
        """Delete notifications of ``kind`` whose payload ``key`` equals ``value``."""

        kind_value = NotificationKind(kind).value
        with self._store_errors():
            candidates = (
                self.session.query(NotificationModel.id, NotificationModel.payload)
                .filter(NotificationModel.kind == kind_value)
                .all()
            )
            ids = [
                notification_id
                for notification_id, payload in candidates
                if key in (payload or {}) and str(payload[key]) == str(value)
            ]
            if not ids:
                return 0
            deleted = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.id.in_(ids))
                .delete(synchronize_session=False)
            )
            self.session.commit()
        return deleted

    @contextmanager
    def _store_errors(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise NotificationStoreError("Notification store is unavailable") from exc

    @staticmethod
    def _to_model(notification: Notification) -> NotificationModel:
        return NotificationModel(
            id=notification.id,
            recipient_user_id=notification.recipient_user_id,
            kind=NotificationKind(notification.kind).value,
            title=notification.title,
            message=notification.message,
            payload=to_json_payload(notification.payload),
            read=bool(notification.read),
            created_at=ensure_app_naive_datetime(
                notification.created_at or now_in_app_timezone()
            ),
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_user_id=model.recipient_user_id,
            kind=NotificationKind(model.kind),
            title=model.title,
            message=model.message,
            payload=model.payload or {},
            read=bool(model.read),
            created_at=ensure_app_timezone(model.created_at),
        )


def _validation_problem(notification: Notification) -> str | None:
    if not notification.id:
        return "missing id"
    if not notification.recipient_user_id:
        return "missing recipient"
    if notification.kind not in NotificationKind.values():
        return f"unknown kind {notification.kind!r}"
    if not notification.title or not notification.message:
        return "missing title or message"
    if not isinstance(notification.payload, dict):
        return "payload must be a mapping"
    try:
        to_json_payload(notification.payload)
    except (TypeError, ValueError) as exc:
        return f"payload is not JSON serializable ({exc})"
    return None


def _is_unavailable(exc: SQLAlchemyError) -> bool:
    """Return ``True`` when ``exc`` points at the database rather than the rows."""

    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


__all__ = [
    "DEFAULT_LIST_LIMIT",
    "InsertResult",
    "NotificationRepository",
    "NotificationStoreError",
]
