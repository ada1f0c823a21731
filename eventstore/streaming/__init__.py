"""Streaming decode of newline-delimited JSON responses."""

from .ndjson import NDJSONStream, decode_ndjson, iter_lines, parse_event, parse_json

__all__ = [
    "NDJSONStream",
    "decode_ndjson",
    "iter_lines",
    "parse_event",
    "parse_json",
]
