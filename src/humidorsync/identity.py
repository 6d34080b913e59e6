"""Identity source.

The authentication flow lives outside this package.  It publishes the
signed-in user id (or ``None`` after sign-out) through an
:class:`IdentitySource`, and the coordinator follows it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

_logger = logging.getLogger(__name__)

IdentityListener = Callable[[str | None], None]


def normalize_identity(identity: str | None) -> str | None:
    """Treat empty or blank ids like ``None``."""
    if identity is None:
        return None
    value = identity.strip()
    return value or None


class IdentitySource:
    """Holds the current identity and notifies listeners when it changes."""

    def __init__(self, identity: str | None = None) -> None:
        self._current = normalize_identity(identity)
        self._listeners: list[IdentityListener] = []

    @property
    def current(self) -> str | None:
        return self._current

    def set(self, identity: str | None) -> None:
        """Publish a new identity.  Listeners only run when the value actually changes."""
        value = normalize_identity(identity)
        if value == self._current:
            return
        _logger.debug("Identity changed: %s -> %s", self._current, value)
        self._current = value
        for listener in list(self._listeners):
            listener(value)

    def clear(self) -> None:
        self.set(None)

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register *listener*.  Returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass  # already removed

        return _unsubscribe
