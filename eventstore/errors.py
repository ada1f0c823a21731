"""
Error taxonomy for the EventStore client.

Every failure raised by this package derives from EventStoreError so callers
can catch the whole family at once, or pick the specific kind they need:

- ConfigError: a mandatory configuration value is missing
- ParseError: a timestamp is not valid RFC 3339
- RequestBuildError: the request body could not be built
- TransportError: the server could not be reached or the body not read
- APIError: the server answered with a non-success status
- DecodeError: a line of an NDJSON response is not a valid document
"""

from __future__ import annotations


class EventStoreError(Exception):
    """Base class for all EventStore client errors."""


class ConfigError(EventStoreError, ValueError):
    """A mandatory configuration value is missing or empty."""


class ParseError(EventStoreError, ValueError):
    """A timestamp string could not be parsed as RFC 3339."""

    def __init__(self, text: str, message: str | None = None):
        self.text = text
        super().__init__(message or f"invalid RFC 3339 timestamp: {text!r}")


class RequestBuildError(EventStoreError):
    """The request could not be constructed (e.g. body serialization failed)."""


class TransportError(EventStoreError):
    """Network-level failure reaching the server or reading its response."""


class APIError(EventStoreError):
    """
    The server responded with a non-success HTTP status.

    Attributes:
        status_code: HTTP status code of the response
        reason: HTTP reason phrase
        body: Raw response body text, kept for diagnostics
    """

    def __init__(self, status_code: int, reason: str = "", body: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        status = f"{status_code} {reason}".strip()
        super().__init__(f"API error: {status} - {body}")


class DecodeError(EventStoreError):
    """
    A line of a newline-delimited JSON response is not a valid document.

    Attributes:
        line: Content of the offending line
        line_number: 1-based position of the line in the response body
    """

    def __init__(self, line: str, line_number: int | None = None, reason: str = ""):
        self.line = line
        self.line_number = line_number
        self.reason = reason
        where = f" at line {line_number}" if line_number is not None else ""
        detail = f": {reason}" if reason else ""
        super().__init__(f"error parsing JSON{where}{detail}: {line!r}")
