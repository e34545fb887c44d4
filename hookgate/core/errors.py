"""Domain exceptions shared by the delivery and admission paths."""


class DataStoreError(Exception):
    """Raised when the registry, ledger or delivery log cannot be read or written.

    Callers must treat this as an internal failure, never as a legitimate
    rejection or as permission to proceed.
    """


class WebhookUrlError(ValueError):
    """Raised when a webhook target URL fails validation."""


class DestinationBlockedError(Exception):
    """Raised when a webhook target resolves to a non-public address."""

    def __init__(self, host: str, reason: str):
        super().__init__(f"Destination {host!r} is not allowed: {reason}")
        self.host = host
        self.reason = reason


class UnknownEventTypeError(ValueError):
    """Raised when an event type is not part of the webhook vocabulary."""
