"""
Newline-delimited JSON stream decoding.

The streaming endpoints answer with one JSON document per line. Documents
are decoded lazily as bytes arrive, so a large stream is never held in
memory at once. Blank lines between documents are skipped, and a single
line may not grow past MAX_LINE_BYTES.

Lines must be strict JSON: the NaN, Infinity and -Infinity constants that
Python's json module accepts by default are rejected.

Usage:
    with client.stream_events("/user/42") as events:
        for event in events:
            ...
"""

import json
import logging
from typing import Callable, Generic, Iterable, Iterator, Optional, TypeVar

from pydantic import JsonValue

from eventstore.errors import DecodeError, TransportError
from eventstore.schemas.event import Event

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_LINE_BYTES = 16 * 1024 * 1024


def iter_lines(chunks: Iterable[bytes], max_line_bytes: int = MAX_LINE_BYTES) -> Iterator[bytes]:
    """
    Split a stream of byte chunks into lines.

    Lines are split on b"\\n" and returned without the separator. A final
    line without a trailing newline is returned at end of stream. Only the
    newly received bytes are searched for a separator, so a line spread
    over many chunks costs time linear in its length.

    Raises:
        DecodeError: A line grows past max_line_bytes without a separator
    """
    buffer = bytearray()
    for chunk in chunks:
        if not chunk:
            continue
        scanned = len(buffer)
        buffer += chunk
        pos = 0
        while True:
            idx = buffer.find(b"\n", max(scanned, pos))
            if idx < 0:
                break
            yield bytes(buffer[pos:idx])
            pos = idx + 1
        if pos:
            del buffer[:pos]
        if len(buffer) > max_line_bytes:
            preview = bytes(buffer[:80]).decode("utf-8", errors="replace")
            raise DecodeError(preview, None, f"line exceeds {max_line_bytes} bytes")
    if buffer:
        yield bytes(buffer)


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant: {name}")


def parse_json(line: str) -> JsonValue:
    """Parse one line as an untyped JSON value."""
    return json.loads(line, parse_constant=_reject_constant)


def parse_event(line: str) -> Event:
    """Parse one line as an Event."""
    return Event.model_validate(parse_json(line))


def decode_ndjson(
    chunks: Iterable[bytes],
    parse: Callable[[str], T],
    max_line_bytes: int = MAX_LINE_BYTES,
) -> Iterator[T]:
    """
    Decode a newline-delimited JSON byte stream.

    Args:
        chunks: Byte chunks of the response body
        parse: Turns one non-blank line into a result
        max_line_bytes: Longest line accepted

    Yields:
        One parsed result per non-blank line, in order

    Raises:
        DecodeError: A line is too long, not valid UTF-8 or cannot be parsed
        TransportError: Reading the underlying stream failed
    """
    line_number = 0
    lines = iter_lines(chunks, max_line_bytes)
    while True:
        try:
            raw = next(lines)
        except StopIteration:
            return
        except TransportError:
            raise
        except DecodeError as e:
            logger.warning(f"NDJSON line {line_number + 1} is too long")
            raise DecodeError(e.line, line_number + 1, e.reason) from e
        except OSError as e:
            raise TransportError(f"error reading response: {e}") from e

        line_number += 1
        stripped = raw.strip()
        if not stripped:
            continue

        try:
            text = stripped.decode("utf-8")
        except UnicodeDecodeError as e:
            text = stripped.decode("utf-8", errors="replace")
            logger.warning(f"Line {line_number} of NDJSON response is not UTF-8")
            raise DecodeError(text, line_number, "invalid UTF-8") from e

        try:
            item = parse(text)
        except ValueError as e:  # JSONDecodeError and pydantic ValidationError
            logger.warning(f"Failed to decode NDJSON line {line_number}: {e}")
            raise DecodeError(text, line_number, str(e)) from e

        yield item


class NDJSONStream(Generic[T]):
    """
    Lazy, single-use sequence of results decoded from an HTTP response.

    The underlying response is released on every exit path: exhaustion,
    a decode or transport error, an explicit close(), or leaving a ``with``
    block. The stream cannot be restarted; issue a new request instead.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        parse: Callable[[str], T],
        close: Optional[Callable[[], None]] = None,
        transform: Optional[Callable[[T], T]] = None,
    ):
        """
        Initialize the stream.

        Args:
            chunks: Byte chunks of the response body
            parse: Turns one line into a result
            close: Releases the underlying response
            transform: Applied to every decoded result before it is yielded
        """
        self._chunks = chunks
        self._parse = parse
        self._close = close
        self._transform = transform
        self._started = False
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the underlying response has been released."""
        return self._closed

    def __iter__(self) -> Iterator[T]:
        if self._started or self._closed:
            raise RuntimeError("NDJSON stream has already been consumed")
        self._started = True
        return self._generate()

    def _generate(self) -> Iterator[T]:
        try:
            for item in decode_ndjson(self._chunks, self._parse):
                if self._transform is not None:
                    item = self._transform(item)
                yield item
        finally:
            self.close()

    def close(self) -> None:
        """Release the underlying response. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._close is not None:
            self._close()

    def __enter__(self) -> "NDJSONStream[T]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
