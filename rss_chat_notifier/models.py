"""Data models for RSS Chat Notifier."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FeedItem:
    """Represents a single RSS item newer than the last run."""

    date: str  # Publication time formatted in the configured time zone
    title: str
    description: str  # HTML stripped
    link: str
    published: datetime

    @property
    def timestamp_ms(self) -> int:
        """Publication time as epoch milliseconds."""
        return int(self.published.timestamp() * 1000)


@dataclass(frozen=True)
class DeliveryTarget:
    """A chat webhook endpoint and the payload rules it requires."""

    name: str
    endpoint_url: str
    body_field: str
    max_message_length: int | None = None  # None means unbounded
