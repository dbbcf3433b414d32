"""Utility script to store a notification for one or more users.

Runs outside the API process, so no live stream is reachable from here: the
notification is persisted and shows up in ``GET /notifications``.
"""

from __future__ import annotations

import argparse
import json

from app.domain.entities import NotificationDraft, NotificationKind
from app.infrastructure.database import SessionLocal, initialize_database
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationDispatcher,
)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the notification."""

    parser = argparse.ArgumentParser(
        description="Persist a notification for the given users.",
    )
    parser.add_argument(
        "--user",
        dest="users",
        action="append",
        required=True,
        help="Recipient user id. Repeat the flag for several recipients.",
    )
    parser.add_argument(
        "--kind",
        choices=NotificationKind.values(),
        default=NotificationKind.POST.value,
        help="Notification category (default: post)",
    )
    parser.add_argument("--title", required=True, help="Notification title")
    parser.add_argument("--message", required=True, help="Notification body")
    parser.add_argument(
        "--payload",
        default="{}",
        help='JSON object with navigation references, e.g. \'{"postId": "p-1"}\'',
    )
    return parser.parse_args()


def main() -> None:
    """Store the notification described by the command line arguments."""

    args = parse_args()

    try:
        payload = json.loads(args.payload)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid --payload: {exc}") from exc
    if not isinstance(payload, dict):
        raise SystemExit("--payload must be a JSON object")

    initialize_database()

    dispatcher = NotificationDispatcher(SessionLocal, NotificationConnectionManager())
    report = dispatcher.send_to_users(
        args.users,
        NotificationDraft(
            kind=NotificationKind(args.kind),
            title=args.title,
            message=args.message,
            payload=payload,
        ),
    )
    if report.store_error:
        raise SystemExit("The notification store is unavailable, nothing was saved.")

    print(
        "Notification stored:\n"
        f"  Kind: {args.kind}\n"
        f"  Recipients: {', '.join(report.persisted) or '-'}"
    )


if __name__ == "__main__":
    main()
