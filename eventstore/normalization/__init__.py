"""CloudEvents normalization of outbound and inbound events."""

from .cloudevents import (
    DEFAULT_DATA_CONTENT_TYPE,
    DEFAULT_SPEC_VERSION,
    EventNormalizer,
    normalize_event,
)

__all__ = [
    "DEFAULT_DATA_CONTENT_TYPE",
    "DEFAULT_SPEC_VERSION",
    "EventNormalizer",
    "normalize_event",
]
