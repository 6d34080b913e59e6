"""Custom exception hierarchy for humidorsync."""

from __future__ import annotations


class HumidorSyncError(Exception):
    """Base exception for all humidorsync errors."""


class SyncConfigError(HumidorSyncError):
    """Invalid or missing configuration."""


class ConnectionSetupError(HumidorSyncError):
    """A subscription could not be opened.

    Raised synchronously by :func:`humidorsync._subscription.open_subscription`
    when the identity, descriptor or app id is missing, or when the transport
    refuses the registration outright.
    """

    def __init__(self, message: str, *, descriptor: str = "") -> None:
        self.descriptor = descriptor
        super().__init__(message)


class StreamError(HumidorSyncError):
    """A live subscription reported a failure.

    Delivered through a handle's ``on_error`` callback.  The coordinator
    records it as data and never re-raises it.
    """

    def __init__(self, descriptor: str, cause: str, message: str = "") -> None:
        self.descriptor = descriptor
        self.cause = cause
        super().__init__(message or f"{descriptor}: {cause}")


class SyncTransportError(HumidorSyncError):
    """HTTP-level failure talking to the document store (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str = "unavailable",
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.path = path
        super().__init__(message)
