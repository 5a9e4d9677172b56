"""Chat webhook publisher for RSS Chat Notifier."""

import json

import requests

from .errors import DeliveryError
from .logging_config import create_execution_logger
from .models import DeliveryTarget


def truncate_message(message: str, max_length: int | None) -> str:
    """Cut a message to at most max_length characters.

    This is a plain slice: it may split a word or an emoji sequence.
    """
    if max_length is None:
        return message
    return message[:max_length]


def build_payload(message: str, target: DeliveryTarget) -> dict[str, str]:
    """Build the single-field JSON body a webhook expects."""
    return {target.body_field: message}


class WebhookPublisher:
    """Handles publishing messages to Slack and Discord style webhooks."""

    def __init__(self, timeout: int = 30, execution_id: str | None = None):
        """Initialize the publisher.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("webhook_publisher", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "RSS-Chat-Notifier/1.0"})

        self.logger.info("WebhookPublisher initialized", timeout=timeout)

    def send_message(self, message: str, target: DeliveryTarget) -> None:
        """
        POST a message to a webhook.

        The message is sent as given; callers apply the target's length limit.

        Args:
            message: Message text
            target: Webhook endpoint and payload rules

        Raises:
            DeliveryError: On network failure or a non-2xx response
        """
        payload = build_payload(message, target)

        self.logger.debug(
            f"Sending message to {target.name} webhook",
            target=target.name,
            message_length=len(message),
        )

        try:
            response = self.session.post(
                target.endpoint_url,
                data=json.dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.logger.error(
                f"Error sending message to {target.name}: {e}",
                target=target.name,
                error=str(e),
            )
            raise DeliveryError(
                f"Failed to send message to {target.name}: {e}", target=target.name
            ) from e

        if not 200 <= response.status_code < 300:
            self.logger.error(
                f"{target.name} webhook returned status {response.status_code}",
                target=target.name,
                status_code=response.status_code,
                response_body=response.text[:500],
            )
            raise DeliveryError(
                f"{target.name} webhook returned status {response.status_code}",
                target=target.name,
                status_code=response.status_code,
            )

        self.logger.info(
            f"Message sent successfully to {target.name}",
            target=target.name,
            status_code=response.status_code,
        )
