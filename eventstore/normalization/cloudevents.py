"""
CloudEvents normalization.

Fills the envelope fields the API expects on every event:

| field            | defaulted when | default                     |
|------------------|----------------|-----------------------------|
| id               | empty          | fresh UUID4                 |
| source           | empty          | configured API URL          |
| datacontenttype  | empty          | "application/json"          |
| specversion      | empty          | "1.0"                       |
| time             | unset          | current UTC time            |

subject, type and data are passed through untouched.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from eventstore.configs.settings import EventStoreConfig
from eventstore.schemas.event import Event
from eventstore.schemas.timestamps import is_unset

logger = logging.getLogger(__name__)

DEFAULT_DATA_CONTENT_TYPE = "application/json"
DEFAULT_SPEC_VERSION = "1.0"


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_event_id() -> str:
    return str(uuid.uuid4())


class EventNormalizer:
    """
    Apply CloudEvents defaults to events.

    Never mutates its input: each call returns a new Event. Fields that are
    already set are left unchanged, so normalizing twice is a no-op.
    """

    def __init__(
        self,
        source: str,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_event_id,
    ):
        """
        Initialize the normalizer.

        Args:
            source: Default source, normally the configured API URL
            clock: Returns the time used for events without one
            id_factory: Returns a fresh identifier for events without one
        """
        self.source = source
        self.clock = clock
        self.id_factory = id_factory

    @classmethod
    def from_config(cls, config: EventStoreConfig, **kwargs) -> "EventNormalizer":
        """Create a normalizer that defaults source to the API URL."""
        return cls(source=config.api_url, **kwargs)

    def normalize(self, event: Event) -> Event:
        """Return a copy of ``event`` with unset envelope fields filled in."""
        updates = {}
        if not event.id:
            updates["id"] = self.id_factory()
        if not event.source:
            updates["source"] = self.source
        if not event.data_content_type:
            updates["data_content_type"] = DEFAULT_DATA_CONTENT_TYPE
        if not event.spec_version:
            updates["spec_version"] = DEFAULT_SPEC_VERSION
        if is_unset(event.time):
            updates["time"] = self.clock()

        if not updates:
            return event.model_copy()
        logger.debug(f"Defaulted {sorted(updates)} on event subject={event.subject!r}")
        return event.model_copy(update=updates)

    def normalize_all(self, events: Iterable[Event]) -> List[Event]:
        """Normalize a batch of events, preserving order."""
        return [self.normalize(event) for event in events]


def normalize_event(
    event: Event,
    config: EventStoreConfig,
    now: Optional[datetime] = None,
) -> Event:
    """
    Normalize a single event against a client configuration.

    Args:
        event: Event to normalize (not modified)
        config: Client configuration; its API URL is the default source
        now: Time to use when the event has none (defaults to current UTC)

    Returns:
        A new, fully populated Event
    """
    clock = (lambda: now) if now is not None else _utc_now
    return EventNormalizer.from_config(config, clock=clock).normalize(event)
