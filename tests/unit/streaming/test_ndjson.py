"""
Unit tests for the ndjson streaming module.

Tests for iter_lines, decode_ndjson and NDJSONStream.
"""

import pytest

from eventstore.errors import DecodeError, TransportError
from eventstore.schemas.event import Event
from eventstore.streaming.ndjson import (
    NDJSONStream,
    decode_ndjson,
    iter_lines,
    parse_event,
    parse_json,
)


def chunked(*chunks: bytes):
    """Yield chunks one by one like a response body."""
    yield from chunks


def failing_after(*chunks: bytes, error: Exception):
    """Yield chunks, then fail like a dropped connection."""
    yield from chunks
    raise error


class TestIterLines:
    """Tests for iter_lines."""

    def test_splits_across_chunks(self):
        """Lines split over several chunks are reassembled."""
        lines = list(iter_lines(chunked(b'{"a":', b'1}\n{"a"', b":2}\n")))
        assert lines == [b'{"a":1}', b'{"a":2}']

    def test_final_line_without_newline(self):
        """An unterminated last line is still returned."""
        assert list(iter_lines(chunked(b"one\ntwo"))) == [b"one", b"two"]

    def test_empty_stream(self):
        assert list(iter_lines(chunked())) == []

    def test_long_line_over_many_chunks(self):
        """A line delivered one byte at a time is reassembled intact."""
        line = b"x" * 5000
        chunks = [line[i : i + 1] for i in range(len(line))] + [b"\nend"]
        assert list(iter_lines(chunked(*chunks))) == [line, b"end"]

    def test_line_longer_than_limit(self):
        """A line that grows past the limit without a separator fails."""
        with pytest.raises(DecodeError) as exc_info:
            list(iter_lines(chunked(b"ok\n", b"a" * 10, b"a" * 10), max_line_bytes=16))
        assert "exceeds 16 bytes" in str(exc_info.value)

    def test_line_at_limit_is_accepted(self):
        assert list(iter_lines(chunked(b"a" * 16, b"\n"), max_line_bytes=16)) == [b"a" * 16]


class TestDecodeNDJSON:
    """Tests for decode_ndjson."""

    def test_skips_blank_lines(self):
        """Blank lines produce no output and are not errors."""
        body = b'{"a":1}\n\n{"a":2}\n'
        assert list(decode_ndjson(chunked(body), parse_json)) == [{"a": 1}, {"a": 2}]

    def test_skips_whitespace_only_lines_and_crlf(self):
        """Whitespace-only lines and CRLF endings are tolerated."""
        body = b'{"a":1}\r\n   \r\n\t\n{"a":2}'
        assert list(decode_ndjson(chunked(body), parse_json)) == [{"a": 1}, {"a": 2}]

    def test_any_json_document_per_line(self):
        """Query results may be any JSON value."""
        body = b'1\n"two"\n[3]\nnull\n{"four":4}\n'
        assert list(decode_ndjson(chunked(body), parse_json)) == [1, "two", [3], None, {"four": 4}]

    def test_malformed_line_stops_after_valid_prefix(self):
        """A bad line fails the sequence after the valid elements before it."""
        results = decode_ndjson(chunked(b'{"a":1}\n{"a":\n{"a":3}\n'), parse_json)
        assert next(results) == {"a": 1}
        with pytest.raises(DecodeError) as exc_info:
            next(results)
        assert exc_info.value.line == '{"a":'
        assert exc_info.value.line_number == 2
        with pytest.raises(StopIteration):
            next(results)

    def test_too_long_line_reports_line_number(self):
        """An oversized line is a DecodeError at its position."""
        results = decode_ndjson(chunked(b"1\n\n", b"2" * 64), parse_json, max_line_bytes=32)
        assert next(results) == 1
        with pytest.raises(DecodeError) as exc_info:
            next(results)
        assert exc_info.value.line_number == 3

    @pytest.mark.parametrize("body", [b"NaN\n", b"Infinity\n", b'{"a": -Infinity}\n', b'[1, NaN]\n'])
    def test_non_standard_constants_rejected(self, body):
        """NaN and Infinity are not JSON and fail the line."""
        with pytest.raises(DecodeError) as exc_info:
            list(decode_ndjson(chunked(body), parse_json))
        assert exc_info.value.line_number == 1

    def test_invalid_utf8_is_decode_error(self):
        """Bytes that are not UTF-8 are reported as DecodeError."""
        with pytest.raises(DecodeError):
            list(decode_ndjson(chunked(b'{"a":"\xff"}\n'), parse_json))

    def test_read_failure_is_transport_error(self):
        """An OSError from the body becomes TransportError."""
        results = decode_ndjson(
            failing_after(b'{"a":1}\n', error=ConnectionResetError("reset")),
            parse_json,
        )
        assert next(results) == {"a": 1}
        with pytest.raises(TransportError):
            next(results)

    def test_transport_error_passes_through(self):
        """A TransportError raised by the chunk source is kept as is."""
        original = TransportError("connection closed")
        with pytest.raises(TransportError) as exc_info:
            list(decode_ndjson(failing_after(error=original), parse_json))
        assert exc_info.value is original

    def test_event_lines(self):
        """parse_event decodes events."""
        body = b'{"subject":"/user/1","type":"added","data":{"n":1}}\n'
        (event,) = decode_ndjson(chunked(body), parse_event)
        assert isinstance(event, Event)
        assert event.subject == "/user/1"
        assert event.data == {"n": 1}

    def test_event_line_with_bad_time_is_decode_error(self):
        """Schema failures on an event line are DecodeError."""
        body = b'{"subject":"/x","type":"t","time":"not-a-time"}\n'
        with pytest.raises(DecodeError):
            list(decode_ndjson(chunked(body), parse_event))

    def test_event_line_with_nan_payload_is_decode_error(self):
        """An event whose data holds NaN is rejected."""
        body = b'{"subject":"/x","type":"t","data":NaN}\n'
        with pytest.raises(DecodeError):
            list(decode_ndjson(chunked(body), parse_event))

    def test_event_line_that_is_not_an_object(self):
        """A valid JSON line that is not an event object is DecodeError."""
        with pytest.raises(DecodeError):
            list(decode_ndjson(chunked(b"[1,2]\n"), parse_event))


class TestNDJSONStream:
    """Tests for NDJSONStream."""

    def test_closes_on_exhaustion(self):
        """The response is released when the stream is consumed."""
        closed = []
        stream = NDJSONStream(chunked(b"1\n2\n"), parse_json, close=lambda: closed.append(True))
        assert list(stream) == [1, 2]
        assert closed == [True]
        assert stream.closed

    def test_closes_on_decode_error(self):
        """The response is released when a line fails."""
        closed = []
        stream = NDJSONStream(chunked(b"1\n{\n"), parse_json, close=lambda: closed.append(True))
        with pytest.raises(DecodeError):
            list(stream)
        assert closed == [True]

    def test_closes_on_transport_error(self):
        """The response is released when reading fails."""
        closed = []
        stream = NDJSONStream(
            failing_after(b"1\n", error=TransportError("gone")),
            parse_json,
            close=lambda: closed.append(True),
        )
        with pytest.raises(TransportError):
            list(stream)
        assert closed == [True]

    def test_closes_when_abandoned_in_with_block(self):
        """Leaving a with block early releases the response once."""
        closed = []
        with NDJSONStream(chunked(b"1\n2\n3\n"), parse_json, close=lambda: closed.append(True)) as stream:
            for item in stream:
                break
        assert item == 1
        assert closed == [True]

    def test_not_restartable(self):
        """A second iteration is refused."""
        stream = NDJSONStream(chunked(b"1\n"), parse_json)
        list(stream)
        with pytest.raises(RuntimeError):
            iter(stream)

    def test_transform_applied(self):
        """The transform runs on every element."""
        stream = NDJSONStream(chunked(b"1\n2\n"), parse_json, transform=lambda v: v * 10)
        assert list(stream) == [10, 20]

    def test_lazy(self):
        """Nothing is read before iteration starts."""
        reads = []

        def body():
            reads.append("read")
            yield b"1\n"

        stream = NDJSONStream(body(), parse_json)
        assert reads == []
        assert list(stream) == [1]
        assert reads == ["read"]
