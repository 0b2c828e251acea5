"""Utility helpers for timezone-aware timestamps."""

from __future__ import annotations

from datetime import datetime

from .config import TIMEZONE


def utc_now() -> datetime:
    """Return the current datetime in UTC."""
    return datetime.now(TIMEZONE)


def to_iso(dt: datetime) -> str:
    """Serialize a datetime the way it is stored in the database."""
    return dt.isoformat(timespec="seconds")
