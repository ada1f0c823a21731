#!/usr/bin/env python3
"""Command-line interface for the EventStore client.

Commands:
  - eventstore ping            : Check API health
  - eventstore audit           : Run the API audit check
  - eventstore stream SUBJECT  : Print the events of a subject as NDJSON
  - eventstore query TEXT      : Print query results as NDJSON
  - eventstore commit FILE     : Commit NDJSON events read from FILE ("-" for stdin)

Connection settings come from EVENTSTORE_API_URL, EVENTSTORE_API_VERSION
and EVENTSTORE_AUTH_TOKEN (or a .env file).

Typical usage:
  eventstore ping
  eventstore stream /user/42
  eventstore query 'FROM e IN events WHERE e.type == "added" PROJECT INTO e'
  cat events.ndjson | eventstore commit -
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import TextIO

from pydantic import ValidationError

from eventstore import __version__
from eventstore.client import EventStoreClient
from eventstore.configs.settings import Settings
from eventstore.errors import EventStoreError
from eventstore.logging import LoggingOptions, setup_logging
from eventstore.schemas.event import Event
from eventstore.streaming.ndjson import decode_ndjson, parse_event

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="eventstore", description="EventStore API client")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log-level", default=None, help="Log level (default: EVENTSTORE_LOG_LEVEL or INFO)")
    p.add_argument("--json-logs", action="store_true", help="Emit JSON logs")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("ping", help="Check API health")
    sub.add_parser("audit", help="Run the API audit check")

    ps = sub.add_parser("stream", help="Stream the events of a subject")
    ps.add_argument("subject", help="Subject to read, e.g. /user/42")

    pq = sub.add_parser("query", help="Run a query")
    pq.add_argument("query", help="Query text")

    pc = sub.add_parser("commit", help="Commit events from an NDJSON file")
    pc.add_argument("file", help='Path to NDJSON events, or "-" for stdin')

    return p.parse_args(argv)


def _read_events(source: TextIO) -> list[Event]:
    chunks = (line.encode("utf-8") for line in source)
    return list(decode_ndjson(chunks, parse_event))


def _write_json_line(out: TextIO, value) -> None:
    out.write(json.dumps(value, ensure_ascii=False) + "\n")


def run(args: argparse.Namespace, client: EventStoreClient, out: TextIO) -> None:
    """Execute one sub-command against a client."""
    if args.cmd == "ping":
        out.write(client.ping())
    elif args.cmd == "audit":
        out.write(client.audit())
    elif args.cmd == "stream":
        with client.stream_events(args.subject) as events:
            for event in events:
                _write_json_line(out, event.to_wire())
    elif args.cmd == "query":
        with client.query(args.query) as results:
            for result in results:
                _write_json_line(out, result)
    elif args.cmd == "commit":
        if args.file == "-":
            events = _read_events(sys.stdin)
        else:
            with open(args.file, encoding="utf-8") as f:
                events = _read_events(f)
        client.commit_events(events)
        out.write(f"committed {len(events)} event(s)\n")


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    args = _parse_args(argv)
    try:
        settings = settings or Settings()
        setup_logging(
            LoggingOptions(level=args.log_level or settings.LOG_LEVEL, json_logs=args.json_logs)
        )
        with EventStoreClient.from_settings(settings) as client:
            run(args, client, sys.stdout)
    except (EventStoreError, ValidationError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
