"""
EventStore API client.

Synchronous client for the EventStore HTTP API. Every operation is a single
request/response exchange:

- stream_events(): POST /stream, NDJSON events (normalized)
- commit_events(): POST /commit, batch of normalized events
- query():         POST /q, NDJSON query results (untyped)
- ping():          GET /status/ping, raw body text
- audit():         GET /status/audit, raw body text

Usage:
    from eventstore import EventStoreClient, EventStoreConfig, Event

    config = EventStoreConfig(
        api_url="https://eventstore.example.com",
        api_version="v1",
        auth_token="secret",
    )
    with EventStoreClient(config) as client:
        client.commit_events([Event(subject="/user/42", type="added", data={"name": "Jane"})])
        with client.stream_events("/user/42") as events:
            for event in events:
                print(event.type, event.data)
"""

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import httpx
from pydantic import JsonValue, ValidationError

from eventstore import __version__
from eventstore.configs.settings import (
    DEFAULT_TIMEOUT_SECONDS,
    EventStoreConfig,
    Settings,
    get_settings,
)
from eventstore.errors import APIError, RequestBuildError, TransportError
from eventstore.normalization.cloudevents import EventNormalizer
from eventstore.schemas.event import Event
from eventstore.streaming.ndjson import NDJSONStream, parse_event, parse_json

logger = logging.getLogger(__name__)

USER_AGENT = f"inoovum-eventstore-sdk-python/{__version__}"
NDJSON_MEDIA_TYPE = "application/x-ndjson"
JSON_MEDIA_TYPE = "application/json"

EventLike = Union[Event, Mapping[str, Any]]


class EventStoreClient:
    """
    Client for a single EventStore API.

    Holds only the immutable configuration and an HTTP client, so one
    instance can serve many calls (and threads, as far as httpx.Client
    allows). Errors are raised immediately; nothing is retried.
    """

    def __init__(
        self,
        config: EventStoreConfig,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        normalizer: Optional[EventNormalizer] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Connection settings
            http_client: HTTP client to use; created (and owned) if omitted
            timeout: Request timeout in seconds for an owned HTTP client
            normalizer: Event normalizer; defaults to one built from config
        """
        self.config = config
        self.normalizer = normalizer or EventNormalizer.from_config(config)
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "EventStoreClient":
        """
        Create a client from environment settings.

        Raises:
            ConfigError: If the URL, version or token is missing
        """
        settings = settings or get_settings()
        kwargs.setdefault("timeout", settings.TIMEOUT)
        return cls(settings.to_config(), **kwargs)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def stream_events(self, subject: str) -> NDJSONStream[Event]:
        """
        Stream the events recorded for a subject.

        Args:
            subject: Subject to read, e.g. "/user/42"

        Returns:
            Lazy stream of normalized events; close it (or use ``with``)
            when not consumed to the end
        """
        response = self._send("POST", "/stream", {"subject": subject}, stream=True)
        return NDJSONStream(
            _iter_body(response),
            parse_event,
            close=response.close,
            transform=self.normalizer.normalize,
        )

    def read_events(self, subject: str) -> List[Event]:
        """Read all events for a subject into a list."""
        with self.stream_events(subject) as events:
            return list(events)

    def commit_events(self, events: Iterable[EventLike]) -> None:
        """
        Commit a batch of events.

        Every event is normalized before sending. The batch succeeds or
        fails as a whole.

        Args:
            events: Events, or mappings accepted by Event
        """
        normalized = self.normalizer.normalize_all(_coerce_event(e) for e in events)
        payload = {"events": [event.to_wire() for event in normalized]}
        response = self._send("POST", "/commit", payload)
        response.close()
        logger.info(f"Committed {len(normalized)} event(s)")

    def query(self, query: str) -> NDJSONStream[JsonValue]:
        """
        Run a query and stream its results.

        Args:
            query: Query text understood by the EventStore

        Returns:
            Lazy stream of untyped JSON results (not normalized)
        """
        response = self._send("POST", "/q", {"query": query}, stream=True)
        return NDJSONStream(_iter_body(response), parse_json, close=response.close)

    def run_query(self, query: str) -> List[JsonValue]:
        """Run a query and collect all results into a list."""
        with self.query(query) as results:
            return list(results)

    def ping(self) -> str:
        """Check the health of the API; returns the body verbatim."""
        return self._send("GET", "/status/ping").text

    def audit(self) -> str:
        """Run the API audit check; returns the body verbatim."""
        return self._send("GET", "/status/audit").text

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _headers(self, has_body: bool, stream: bool) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.auth_token}",
            "User-Agent": USER_AGENT,
        }
        if has_body:
            headers["Content-Type"] = JSON_MEDIA_TYPE
        if stream:
            headers["Accept"] = NDJSON_MEDIA_TYPE
        return headers

    def _send(
        self,
        method: str,
        suffix: str,
        payload: Optional[Dict[str, Any]] = None,
        stream: bool = False,
    ) -> httpx.Response:
        """
        Send one request and check its status.

        Streaming responses are returned unread and must be closed by the
        caller; all others are fully read.

        Raises:
            RequestBuildError: The body could not be serialized
            TransportError: The request failed at the network level
            APIError: The status is not 200
        """
        url = self.config.endpoint(suffix)
        content = None
        if payload is not None:
            try:
                content = json.dumps(payload, allow_nan=False).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise RequestBuildError(f"error marshaling request: {e}") from e

        try:
            request = self._http.build_request(
                method,
                url,
                headers=self._headers(has_body=content is not None, stream=stream),
                content=content,
            )
        except (httpx.InvalidURL, httpx.HTTPError) as e:
            raise RequestBuildError(f"error creating request: {e}") from e

        logger.debug(f"{method} {url}")
        try:
            response = self._http.send(request, stream=stream)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise TransportError(f"error making request: {e}") from e

        if response.status_code != httpx.codes.OK:
            body = _read_error_body(response)
            logger.warning(f"{method} {url} returned {response.status_code}")
            raise APIError(response.status_code, response.reason_phrase, body)

        logger.debug(f"{method} {url} returned {response.status_code}")
        return response

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "EventStoreClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _coerce_event(value: EventLike) -> Event:
    if isinstance(value, Event):
        return value
    try:
        return Event.model_validate(value)
    except ValidationError as e:
        raise RequestBuildError(f"invalid event: {e}") from e


def _iter_body(response: httpx.Response) -> Iterator[bytes]:
    """Yield body chunks, reporting read failures as TransportError."""
    try:
        yield from response.iter_bytes()
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise TransportError(f"error reading response: {e}") from e


def _read_error_body(response: httpx.Response) -> str:
    """Read and release an error response, keeping whatever body arrived."""
    try:
        response.read()
        return response.text
    except (httpx.HTTPError, httpx.StreamError) as e:
        logger.debug(f"Could not read error body: {e}")
        return ""
    finally:
        response.close()
