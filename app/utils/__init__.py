"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    epoch_millis,
    get_app_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
)
from .serialization import json_default, to_json_payload

__all__ = [
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "epoch_millis",
    "get_app_timezone",
    "json_default",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "to_json_payload",
]
