"""Last-writer-wins conflict resolution.

``updated_at`` is the only conflict signal: an incoming copy of a task
replaces the local one only when it was written strictly later.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

Winner = Literal["local", "remote", "equal"]


def compare_timestamps(local_updated_at: datetime | None, remote_updated_at: datetime | None) -> Winner:
    """Compare two modification timestamps to determine which is newer.

    An unset timestamp loses against any set one.

    Returns:
        "local" if local is newer, "remote" if remote is newer, "equal" if same
    """
    if local_updated_at is None and remote_updated_at is None:
        return "equal"
    if local_updated_at is None:
        return "remote"
    if remote_updated_at is None:
        return "local"
    if local_updated_at > remote_updated_at:
        return "local"
    if remote_updated_at > local_updated_at:
        return "remote"
    return "equal"


def remote_wins(local_updated_at: datetime | None, remote_updated_at: datetime | None) -> bool:
    """True when the remote copy is strictly newer; ties keep the local copy."""
    return compare_timestamps(local_updated_at, remote_updated_at) == "remote"
