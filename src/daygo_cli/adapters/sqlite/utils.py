"""Utility functions for SQLite adapter."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def to_db(value: datetime | None) -> str | None:
    """Format a timestamp for storage.

    Returns:
        Fixed-width UTC ISO string, or None for an unset timestamp
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db(value: str | None) -> datetime | None:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if value is None or value == "":
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert sqlite3.Row to dictionary.

    Args:
        row: sqlite3.Row object

    Returns:
        Dictionary with column names as keys
    """
    if row is None:
        return {}
    return dict(row)


def placeholders(count: int) -> str:
    """Build a ``(?, ?, ...)`` group for an IN clause with *count* parameters."""
    if count < 1:
        raise ValueError("placeholder count must be positive")
    return "(" + ", ".join(["?"] * count) + ")"
