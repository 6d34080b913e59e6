"""Deterministic rules for the aggregate synchronization state.

This module holds no state.  The coordinator asks it whether a callback is
still current and how ``loading``/``error`` move in response.
"""

from __future__ import annotations

from humidorsync.models.view import SyncError


def is_current(*, handle_epoch: int, current_epoch: int, cancelled: bool) -> bool:
    """A delivery counts only if its handle is live and belongs to the current epoch."""
    return not cancelled and handle_epoch == current_epoch


def loading_after_delivery(*, loading: bool, descriptor: str, primary: str) -> bool:
    """Loading ends on the primary's first snapshot or failure and never comes back."""
    if not loading:
        return False
    return descriptor != primary


def error_after_failure(current: SyncError | None, incoming: SyncError) -> SyncError:
    """First failure of the epoch wins."""
    return current if current is not None else incoming
