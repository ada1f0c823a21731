"""
Python client for the EventStore HTTP API.

Events are exchanged as CloudEvents envelopes; streaming endpoints answer
with newline-delimited JSON that is decoded lazily.

Usage:
    from eventstore import EventStoreClient, EventStoreConfig, Event

    client = EventStoreClient(EventStoreConfig(api_url, "v1", token))
    client.commit_events([Event(subject="/user/42", type="added", data={})])
    events = client.read_events("/user/42")
"""

__version__ = "0.1.0"

from .client import EventStoreClient
from .configs.settings import EventStoreConfig, Settings, get_settings
from .errors import (
    APIError,
    ConfigError,
    DecodeError,
    EventStoreError,
    ParseError,
    RequestBuildError,
    TransportError,
)
from .normalization.cloudevents import EventNormalizer, normalize_event
from .schemas.event import Event
from .streaming.ndjson import NDJSONStream

__all__ = [
    "__version__",
    "APIError",
    "ConfigError",
    "DecodeError",
    "Event",
    "EventNormalizer",
    "EventStoreClient",
    "EventStoreConfig",
    "EventStoreError",
    "NDJSONStream",
    "ParseError",
    "RequestBuildError",
    "Settings",
    "TransportError",
    "get_settings",
    "normalize_event",
]
