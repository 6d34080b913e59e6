"""Synchronization coordinator.

Owns:
- one subscription handle per tracked collection for the current identity
- routing each delivered snapshot into the matching collection store
- the aggregate ``loading``/``error`` state
- the epoch lifecycle (idle -> active -> torn down) driven by identity changes

All callbacks arrive on a single event loop and never overlap, so there is
no locking here.  Stale deliveries are rejected by comparing the handle's
epoch with the current one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from humidorsync._subscription import SubscriptionHandle, open_subscription
from humidorsync._transport import Transport
from humidorsync.config import SyncConfig
from humidorsync.descriptors import DESCRIPTORS, PRIMARY_DESCRIPTOR, CollectionDescriptor
from humidorsync.exceptions import ConnectionSetupError, StreamError, SyncConfigError
from humidorsync.identity import IdentitySource, normalize_identity
from humidorsync.models.document import Document
from humidorsync.models.view import SyncError, SyncView
from humidorsync.state.policy import error_after_failure, is_current, loading_after_delivery
from humidorsync.state.store import CollectionStore

_logger = logging.getLogger(__name__)

ViewListener = Callable[[SyncView], None]

#: ``SyncError.cause`` recorded when a subscription cannot even be opened.
SETUP_FAILED = "setup-failed"


class SyncCoordinator:
    """Keeps the three per-user collections in sync with the remote store.

    Usage::

        async with SyncCoordinator(transport, config=config) as coordinator:
            coordinator.add_listener(render)
            coordinator.bind(identity_source)
    """

    def __init__(
        self,
        transport: Transport,
        *,
        config: SyncConfig | None = None,
        app_id: str | None = None,
        primary: CollectionDescriptor = PRIMARY_DESCRIPTOR,
        logger: logging.Logger | None = None,
    ) -> None:
        resolved_app_id = app_id or (config.app_id if config is not None else "")
        if not resolved_app_id:
            raise SyncConfigError("SyncCoordinator needs an app_id (pass app_id= or config=)")
        if primary not in DESCRIPTORS:
            raise SyncConfigError(f"Primary collection {primary.key!r} is not a tracked collection")

        self._transport = transport
        self._app_id = resolved_app_id
        self._primary = primary
        self._logger = logger or _logger

        self._stores: dict[str, CollectionStore] = {d.key: CollectionStore(d.key) for d in DESCRIPTORS}
        self._handles: list[SubscriptionHandle] = []
        self._listeners: list[ViewListener] = []
        self._unbind: Callable[[], None] | None = None

        self._identity: str | None = None
        self._epoch = 0
        self._loading = True
        self._error: SyncError | None = None
        self._view = self._build_view()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SyncCoordinator:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Consumer interface
    # ------------------------------------------------------------------

    @property
    def view(self) -> SyncView:
        return self._view

    def snapshot(self) -> SyncView:
        """Return the current read-only projection."""
        return self._view

    @property
    def identity(self) -> str | None:
        return self._identity

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> SyncError | None:
        return self._error

    @property
    def handles(self) -> tuple[SubscriptionHandle, ...]:
        return tuple(self._handles)

    def store(self, key: str) -> CollectionStore:
        return self._stores[key]

    def add_listener(self, listener: ViewListener) -> Callable[[], None]:
        """Call *listener* with the new view after every transition.  Returns a remover."""
        self._listeners.append(listener)

        def _remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass  # already removed

        return _remove

    # ------------------------------------------------------------------
    # Identity lifecycle
    # ------------------------------------------------------------------

    def bind(self, source: IdentitySource) -> Callable[[], None]:
        """Follow *source*: apply its current identity now and every later change."""
        self.unbind()
        self._unbind = source.subscribe(self.set_identity)
        self.set_identity(source.current)
        return self.unbind

    def unbind(self) -> None:
        unbind = self._unbind
        self._unbind = None
        if unbind is not None:
            unbind()

    def set_identity(self, identity: str | None) -> None:
        """Switch to *identity* (``None`` means signed out).

        Every handle of the previous epoch is cancelled before any handle of
        the new one is opened.  Re-applying the current identity is a no-op.
        """
        value = normalize_identity(identity)
        if value == self._identity:
            return

        previous = self._identity
        self._cancel_handles()
        self._start_epoch(value)
        self._logger.debug(
            "Identity %s -> %s, epoch %d",
            previous,
            value,
            self._epoch,
        )
        if value is not None:
            self._open_handles(value)
        self._publish()

    def close(self) -> None:
        """Tear down: cancel every handle, stop following identity, reset to idle."""
        self.unbind()
        had_handles = bool(self._handles)
        self._cancel_handles()
        if self._identity is None and not had_handles:
            return
        self._start_epoch(None)
        self._logger.debug("Coordinator torn down at epoch %d", self._epoch)
        self._publish()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start_epoch(self, identity: str | None) -> None:
        self._epoch += 1
        self._identity = identity
        for store in self._stores.values():
            store.clear()
        self._loading = True
        self._error = None

    def _cancel_handles(self) -> None:
        handles = self._handles
        self._handles = []
        for handle in handles:
            try:
                handle.cancel()
            except Exception:
                self._logger.exception("Cancelling %r failed", handle)
        if handles:
            self._logger.debug("Cancelled %d subscription(s) from epoch %d", len(handles), handles[0].epoch)

    def _open_handles(self, identity: str) -> None:
        epoch = self._epoch
        for descriptor in DESCRIPTORS:
            try:
                handle = open_subscription(
                    self._transport,
                    descriptor,
                    identity,
                    epoch=epoch,
                    app_id=self._app_id,
                    on_snapshot=self._on_snapshot,
                    on_error=self._on_error,
                )
            except ConnectionSetupError as exc:
                self._logger.warning("Could not subscribe to %s: %s", descriptor.key, exc)
                self._record_failure(
                    descriptor,
                    SyncError(descriptor=descriptor.key, cause=SETUP_FAILED, message=str(exc)),
                )
                continue

            if epoch != self._epoch:
                # A listener switched identity while this epoch was still opening.
                handle.cancel()
                return
            self._handles.append(handle)

    def _record_failure(self, descriptor: CollectionDescriptor, error: SyncError) -> None:
        self._error = error_after_failure(self._error, error)
        self._loading = loading_after_delivery(
            loading=self._loading,
            descriptor=descriptor.key,
            primary=self._primary.key,
        )

    def _accepts(self, handle: SubscriptionHandle) -> bool:
        if is_current(handle_epoch=handle.epoch, current_epoch=self._epoch, cancelled=handle.cancelled):
            return True
        self._logger.debug(
            "Ignoring stale delivery for %s (handle epoch %d, current %d)",
            handle.descriptor.key,
            handle.epoch,
            self._epoch,
        )
        return False

    def _on_snapshot(self, handle: SubscriptionHandle, documents: Sequence[Document]) -> None:
        if not self._accepts(handle):
            return

        descriptor = handle.descriptor
        self._stores[descriptor.key].replace(documents)
        was_loading = self._loading
        self._loading = loading_after_delivery(
            loading=self._loading,
            descriptor=descriptor.key,
            primary=self._primary.key,
        )
        self._logger.debug("%s updated: %d document(s)", descriptor.key, len(documents))
        if was_loading and not self._loading:
            self._logger.debug("Initial data load complete for %s", self._identity)
        self._publish()

    def _on_error(self, handle: SubscriptionHandle, error: StreamError) -> None:
        if not self._accepts(handle):
            return

        descriptor = handle.descriptor
        self._logger.warning("Error on %s: %s", descriptor.key, error)
        self._record_failure(
            descriptor,
            SyncError(descriptor=descriptor.key, cause=error.cause, message=str(error)),
        )
        self._publish()

    def _build_view(self) -> SyncView:
        return SyncView(
            humidors=self._stores["humidors"].read(),
            cigars=self._stores["cigars"].read(),
            journal_entries=self._stores["journalEntries"].read(),
            loading=self._loading,
            error=self._error,
            identity=self._identity,
            epoch=self._epoch,
        )

    def _publish(self) -> None:
        self._view = self._build_view()
        view = self._view
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                self._logger.exception("Sync view listener %r failed", listener)
