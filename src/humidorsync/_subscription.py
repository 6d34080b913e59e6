"""Epoch-tagged subscription handles.

A :class:`SubscriptionHandle` owns exactly one transport registration.
It remembers the epoch it was opened in and stops forwarding deliveries
the moment :meth:`SubscriptionHandle.cancel` is called, so a late callback
from a retiring transport can never reach the coordinator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from humidorsync._transport import Transport, Unsubscribe
from humidorsync.descriptors import CollectionDescriptor
from humidorsync.exceptions import ConnectionSetupError, HumidorSyncError, StreamError
from humidorsync.models.document import Document

_logger = logging.getLogger(__name__)

HandleSnapshotCallback = Callable[["SubscriptionHandle", Sequence[Document]], None]
HandleErrorCallback = Callable[["SubscriptionHandle", StreamError], None]


def _cause_of(exc: Exception) -> str:
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code
    return type(exc).__name__


class SubscriptionHandle:
    """One live connection to one collection for one epoch."""

    def __init__(
        self,
        descriptor: CollectionDescriptor,
        *,
        identity: str,
        epoch: int,
        path: str,
        on_snapshot: HandleSnapshotCallback,
        on_error: HandleErrorCallback,
    ) -> None:
        self.descriptor = descriptor
        self.identity = identity
        self.epoch = epoch
        self.path = path
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._unsubscribe: Unsubscribe | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _attach(self, unsubscribe: Unsubscribe) -> None:
        self._unsubscribe = unsubscribe

    def _deliver_snapshot(self, documents: Sequence[Document]) -> None:
        if self._cancelled:
            _logger.debug("Dropping snapshot for cancelled %s (epoch %d)", self.descriptor.key, self.epoch)
            return
        self._on_snapshot(self, documents)

    def _deliver_error(self, exc: Exception) -> None:
        if self._cancelled:
            _logger.debug("Dropping error for cancelled %s (epoch %d)", self.descriptor.key, self.epoch)
            return
        if isinstance(exc, StreamError):
            error = exc
        else:
            error = StreamError(self.descriptor.key, _cause_of(exc), str(exc))
        self._on_error(self, error)

    def cancel(self) -> None:
        """Stop delivery.  Safe to call more than once; only the first call reaches the transport."""
        if self._cancelled:
            return
        self._cancelled = True
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"SubscriptionHandle({self.descriptor.key!r}, epoch={self.epoch}, {state})"


def open_subscription(
    transport: Transport,
    descriptor: CollectionDescriptor | None,
    identity: str | None,
    *,
    epoch: int,
    app_id: str,
    on_snapshot: HandleSnapshotCallback,
    on_error: HandleErrorCallback,
) -> SubscriptionHandle:
    """Register a live listener for *descriptor* under *identity*.

    Raises :class:`ConnectionSetupError` when the subscription cannot be
    addressed or the transport rejects the registration.  Delivery is
    asynchronous; this call returns as soon as the transport has accepted
    the listener.
    """
    if descriptor is None:
        raise ConnectionSetupError("No collection descriptor given")
    if not identity:
        raise ConnectionSetupError(f"No identity to subscribe to {descriptor.key}", descriptor=descriptor.key)
    path = descriptor.path(app_id=app_id, identity=identity)

    handle = SubscriptionHandle(
        descriptor,
        identity=identity,
        epoch=epoch,
        path=path,
        on_snapshot=on_snapshot,
        on_error=on_error,
    )
    try:
        unsubscribe = transport.subscribe(path, handle._deliver_snapshot, handle._deliver_error)
    except ConnectionSetupError as exc:
        if not exc.descriptor:
            exc.descriptor = descriptor.key
        raise
    except (HumidorSyncError, OSError, RuntimeError, ValueError) as exc:
        raise ConnectionSetupError(
            f"Transport refused subscription to {path}: {exc}",
            descriptor=descriptor.key,
        ) from exc
    handle._attach(unsubscribe)
    return handle
