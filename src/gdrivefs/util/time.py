from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def parse_drive_time(value: Any) -> Optional[datetime]:
    """
    Parse a Drive RFC3339 timestamp ("2025-01-01T12:34:56.789Z") into an
    aware UTC datetime.

    Missing or malformed values yield None; Drive omits modifiedTime for
    some shortcut and shared-drive objects.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    s = value.strip()
    # fromisoformat() before 3.11 rejects the "Z" suffix.
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return None
    return dt.astimezone(timezone.utc)


def to_timestamp(dt: Optional[datetime]) -> Optional[int]:
    """Whole epoch seconds of an aware datetime, or None."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        raise ValueError("naive datetime is not allowed; timezone-aware required")
    return int(dt.timestamp())
