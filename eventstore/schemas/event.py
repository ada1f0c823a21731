# eventstore/schemas/event.py
"""
Event schema for the EventStore API.

Events follow the CloudEvents envelope: a small set of metadata fields
(id, source, subject, type, time, datacontenttype, specversion) around an
arbitrary JSON payload in ``data``. Attribute names are snake_case; the wire
names are the lowercase CloudEvents keys and can be used interchangeably
when constructing an Event.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    field_serializer,
    field_validator,
)

from eventstore.schemas.timestamps import format_rfc3339, parse_rfc3339

# Keys dropped from the wire form when empty
_OMIT_WHEN_EMPTY = ("id", "source", "datacontenttype", "specversion")


class Event(BaseModel):
    """
    A single event exchanged with the EventStore.

    ``subject`` and ``type`` are required by the API contract but are not
    defaulted or validated here. Empty metadata fields and a ``None`` time
    mean "unset" and are filled in by the normalizer.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "6f1a9a3e-4c1d-4d7e-9d1b-6a2f3b9c8e10",
                "source": "https://eventstore.example.com",
                "subject": "/user/42",
                "type": "added",
                "time": "2024-06-15T20:00:00Z",
                "data": {"name": "Jane Doe"},
                "datacontenttype": "application/json",
                "specversion": "1.0",
            }
        },
    )

    id: str = ""
    source: str = ""
    subject: str = ""
    type: str = ""
    time: Optional[datetime] = None
    data: JsonValue = None
    data_content_type: str = Field(default="", alias="datacontenttype")
    spec_version: str = Field(default="", alias="specversion")

    @field_validator("time", mode="before")
    @classmethod
    def parse_time(cls, v):
        """Accept RFC 3339 strings; null, empty and the zero instant mean unset."""
        return parse_rfc3339(v)

    @field_validator("id", "source", "subject", "type", "data_content_type", "spec_version", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        """Treat JSON null metadata as an empty (unset) string."""
        return "" if v is None else v

    @field_serializer("time")
    def serialize_time(self, v: Optional[datetime]) -> Optional[str]:
        """Serialize time as RFC 3339, or null when unset."""
        return format_rfc3339(v)

    def to_wire(self) -> Dict[str, Any]:
        """
        Return the JSON-ready representation sent to the API.

        Empty id, source, datacontenttype and specversion are omitted;
        subject, type, time and data are always present.
        """
        payload = self.model_dump(mode="json", by_alias=True)
        for key in _OMIT_WHEN_EMPTY:
            if payload.get(key) == "":
                del payload[key]
        return payload
