"""Helpers to turn arbitrary payload values into JSON compatible data."""

from __future__ import annotations

import json
from datetime import date, datetime, time
from typing import Any, Mapping


def json_default(value: Any) -> Any:
    """Fallback for :func:`json.dumps` covering ids, timestamps and sets."""

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def to_json_payload(payload: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return ``payload`` as a plain dict holding only JSON scalars and containers.

    Values such as ``uuid.UUID`` or ``datetime`` become strings. Raises
    ``TypeError`` or ``ValueError`` when the payload cannot be represented at
    all, e.g. because of circular references or tuple keys.
    """

    if not payload:
        return {}
    return json.loads(json.dumps(dict(payload), default=json_default))


__all__ = ["json_default", "to_json_payload"]
