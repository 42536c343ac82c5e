from __future__ import annotations

from datetime import datetime, timezone


def now_millis() -> int:
    """Current UTC time as milliseconds since the Unix epoch."""

    return int(datetime.now(timezone.utc).timestamp() * 1000)


def from_rfc3339(value: str) -> int:
    """Parse an RFC 3339 timestamp (``2019-05-14T19:19:26Z``) into epoch millis."""

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def to_date_str(millis: int) -> str:
    """Render epoch millis as ``YYYY-MM-DD`` (UTC), the form GitHub search expects."""

    dt = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"


def to_iso(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()
