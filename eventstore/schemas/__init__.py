"""Wire schemas: the Event model and the RFC 3339 timestamp codec."""

from .event import Event
from .timestamps import ZERO_TIME, format_rfc3339, is_unset, parse_rfc3339

__all__ = [
    "Event",
    "ZERO_TIME",
    "format_rfc3339",
    "is_unset",
    "parse_rfc3339",
]
