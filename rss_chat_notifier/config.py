"""Configuration management for RSS Chat Notifier."""

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import DeliveryTarget

# Property store keys
FEED_URL_KEY = "FEED_URL"
SLACK_WEBHOOK_URL_KEY = "SLACK_WEBHOOK_URL"
DISCORD_WEBHOOK_URL_KEY = "DISCORD_WEBHOOK_URL"


@dataclass(frozen=True)
class TargetSpec:
    """Static payload rules for one kind of chat webhook."""

    settings_key: str
    body_field: str
    max_message_length: int | None = None


# Delivery order follows the table order
DELIVERY_TARGETS: dict[str, TargetSpec] = {
    "slack": TargetSpec(settings_key=SLACK_WEBHOOK_URL_KEY, body_field="text"),
    "discord": TargetSpec(
        settings_key=DISCORD_WEBHOOK_URL_KEY,
        body_field="content",
        max_message_length=2000,
    ),
}


@dataclass
class RunSettings:
    """Settings read from the property store at the start of a run."""

    feed_url: str
    slack_webhook_url: str = ""
    discord_webhook_url: str = ""

    def webhook_url(self, settings_key: str) -> str:
        """Get the webhook URL stored under a property key."""
        if settings_key == SLACK_WEBHOOK_URL_KEY:
            return self.slack_webhook_url
        if settings_key == DISCORD_WEBHOOK_URL_KEY:
            return self.discord_webhook_url
        raise KeyError(settings_key)


class Config:
    """Main configuration manager."""

    DEFAULT_PROPERTIES_TABLE = "rss-chat-notifier-properties"
    DEFAULT_TIMEOUT = 30

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.properties_table = os.getenv(
            "PROPERTIES_TABLE", self.DEFAULT_PROPERTIES_TABLE
        )
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.timezone_name = os.getenv("FEED_TIMEZONE", "UTC")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        timeout = os.getenv("REQUEST_TIMEOUT", str(self.DEFAULT_TIMEOUT))
        try:
            self.request_timeout = int(timeout)
        except ValueError:
            raise ValueError(f"REQUEST_TIMEOUT must be an integer: {timeout!r}")
        if self.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")

    def get_timezone(self) -> ZoneInfo:
        """Get the time zone used to format item dates."""
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {self.timezone_name}")

    def load_settings(self, store) -> RunSettings:
        """Read the feed and webhook URLs from the property store.

        Args:
            store: PropertyStore holding the user-entered settings

        Returns:
            RunSettings for this run

        Raises:
            ValueError: If no feed URL is configured
        """
        feed_url = store.get_property(FEED_URL_KEY).strip()
        if not feed_url:
            raise ValueError(f"{FEED_URL_KEY} is not configured")

        return RunSettings(
            feed_url=feed_url,
            slack_webhook_url=store.get_property(SLACK_WEBHOOK_URL_KEY).strip(),
            discord_webhook_url=store.get_property(DISCORD_WEBHOOK_URL_KEY).strip(),
        )

    def get_delivery_targets(self, settings: RunSettings) -> list[DeliveryTarget]:
        """Get the delivery targets that have a webhook URL configured."""
        targets = []
        for name, spec in DELIVERY_TARGETS.items():
            url = settings.webhook_url(spec.settings_key)
            if not url:
                continue
            targets.append(
                DeliveryTarget(
                    name=name,
                    endpoint_url=url,
                    body_field=spec.body_field,
                    max_message_length=spec.max_message_length,
                )
            )
        return targets
