from __future__ import annotations

import datetime
import uuid


def gen_id(prefix: str = "", suffix: str = "", without_hyphen: bool = True, digis: int = 32) -> str:
    """Generate a unique identifier (UUID) with optional prefix and
    suffix.

    Args:
        prefix: A string to prepend to the generated UUID (default: "").
        suffix: A string to append to the generated UUID (default: "").
        without_hyphen: Whether to remove hyphens from the UUID
            (default: True).
        digis: Number of digits to include from the UUID (default: 32).

    Returns:
        A unique identifier string with the specified prefix and suffix.
    """
    uid = uuid.uuid4()
    uid_str = uid.hex if without_hyphen else str(uid)
    uid_str = uid_str[:digis]
    return f"{prefix}{uid_str}{suffix}"


def utcnow() -> datetime.datetime:
    """Get the current UTC datetime with timezone info."""
    return datetime.datetime.now(datetime.UTC)


def format_duration(seconds: float) -> str:
    """Render a number of seconds as ``HH:MM:SS``.

    Hours are not wrapped, so a 26 hour consultation renders as
    ``26:00:00``. Negative input is clamped to zero.

    Args:
        seconds: Elapsed seconds.

    Returns:
        The zero-padded duration string.
    """
    total = max(int(seconds), 0)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_datetime_short(value: datetime.datetime, tz: datetime.tzinfo | None = None) -> str:
    """Format a datetime as ``dd/mm/yyyy HH:MM``.

    Args:
        value: The datetime to format.
        tz: Timezone to convert to before formatting. Naive datetimes are
            formatted as-is; aware ones default to the local timezone.

    Returns:
        The formatted string.
    """
    if value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.strftime("%d/%m/%Y %H:%M")
