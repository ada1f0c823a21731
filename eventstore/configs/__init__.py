"""Configuration for the EventStore client."""

from .settings import EventStoreConfig, Settings, get_settings

__all__ = ["EventStoreConfig", "Settings", "get_settings"]
