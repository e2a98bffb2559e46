"""Time utilities shared by the auth services."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def to_epoch_ms(moment: datetime) -> int:
    """Convert an aware datetime to integer epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def isoformat_z(moment: datetime) -> str:
    """Render `moment` as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso8601(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC.

    Raises:
        ValueError: If `value` is not a valid timestamp.
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
