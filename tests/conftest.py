"""
Shared pytest fixtures for the EventStore client test suite.

Provides a test configuration, an Event factory, and a client wired to an
in-memory httpx transport that records every request it receives.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Callable, List

import httpx
import pytest

from eventstore.client import EventStoreClient
from eventstore.configs.settings import EventStoreConfig
from eventstore.schemas.event import Event

API_URL = "https://eventstore.example.com/"
API_VERSION = "v1"
AUTH_TOKEN = "test-token"


@pytest.fixture
def config():
    """Return a client configuration with a trailing slash on the URL."""
    return EventStoreConfig(api_url=API_URL, api_version=API_VERSION, auth_token=AUTH_TOKEN)


@pytest.fixture
def create_event():
    """
    Return a function that creates Event objects with sensible defaults.

    Example:
        event = create_event(subject="/user/7", id="")
    """

    def _create_event(**kwargs) -> Event:
        defaults = {
            "id": "evt-1",
            "source": "https://producer.example.com",
            "subject": "/user/42",
            "type": "added",
            "time": datetime(2024, 6, 15, 20, 0, tzinfo=timezone.utc),
            "data": {"name": "Jane Doe"},
            "data_content_type": "application/json",
            "spec_version": "1.0",
        }
        defaults.update(kwargs)
        return Event(**defaults)

    return _create_event


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            request.read()
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last_request.content)


@pytest.fixture
def make_client(config):
    """
    Return a factory building an EventStoreClient over a RecordingTransport.

    Example:
        client, transport = make_client(lambda request: httpx.Response(200, text="pong"))
    """
    clients = []

    def _make_client(handler):
        transport = RecordingTransport(handler)
        client = EventStoreClient(config, http_client=httpx.Client(transport=transport))
        clients.append(client)
        return client, transport

    yield _make_client

    for client in clients:
        client._http.close()


@pytest.fixture(autouse=True)
def reset_eventstore_logger():
    """Undo handlers installed by setup_logging() during a test."""
    logger = logging.getLogger("eventstore")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
