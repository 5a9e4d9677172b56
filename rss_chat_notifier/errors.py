"""Exceptions raised by RSS Chat Notifier."""


class NotifierError(Exception):
    """Base class for run-aborting errors."""


class FetchError(NotifierError):
    """The feed could not be downloaded (network error, timeout or non-2xx)."""


class ParseError(NotifierError):
    """The feed body is not XML or lacks the channel/item structure."""


class DeliveryError(NotifierError):
    """A webhook POST failed."""

    def __init__(self, message: str, target: str, status_code: int | None = None):
        super().__init__(message)
        self.target = target
        self.status_code = status_code
