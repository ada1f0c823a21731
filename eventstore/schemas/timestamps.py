"""
RFC 3339 timestamp codec.

The wire format carries event times as RFC 3339 strings, or JSON null when
no time is known. On the Python side an unset time is ``None``. Peers that
serialize an unset time as the zero instant (0001-01-01T00:00:00Z) are
decoded to ``None`` as well.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from eventstore.errors import ParseError

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_RFC3339_RE = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt ]"
    r"(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})"
)


def is_unset(value: Optional[datetime]) -> bool:
    """Return True if the timestamp is absent."""
    return value is None or _as_utc_if_naive(value) == ZERO_TIME


def parse_rfc3339(value) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp.

    Args:
        value: A string (optionally still JSON-quoted), None, or a datetime

    Returns:
        Timezone-aware datetime, or None when the value is null/empty

    Raises:
        ParseError: If the text is not a valid RFC 3339 timestamp
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return None if is_unset(value) else _as_utc_if_naive(value)
    if not isinstance(value, str):
        raise ParseError(repr(value), f"expected RFC 3339 string, got {type(value).__name__}")

    text = value.strip('"')
    if text == "null" or text == "":
        return None

    match = _RFC3339_RE.fullmatch(text)
    if not match:
        raise ParseError(text)

    # datetime only keeps microseconds
    frac = (match.group("frac") or "")[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"

    try:
        parsed = datetime.fromisoformat(
            f"{match.group('date')}T{match.group('time')}.{frac}{offset}"
        )
    except ValueError as e:
        raise ParseError(text, f"invalid RFC 3339 timestamp: {text!r} ({e})") from e

    if parsed == ZERO_TIME:
        return None
    return parsed


def format_rfc3339(value: Optional[datetime]) -> Optional[str]:
    """
    Format a timestamp as RFC 3339 with second precision.

    UTC renders with a "Z" suffix, other offsets as "+HH:MM". Naive values
    are taken as UTC. An unset value formats to None (JSON null).
    """
    if is_unset(value):
        return None
    text = _as_utc_if_naive(value).replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _as_utc_if_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
