from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from humidorsync.exceptions import ConnectionSetupError
from humidorsync.models.document import Document


@dataclass
class FakeRegistration:
    path: str
    on_snapshot: Callable[[list[Document]], None]
    on_error: Callable[[Exception], None]
    cancel_calls: int = 0

    @property
    def cancelled(self) -> bool:
        return self.cancel_calls > 0

    @property
    def key(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def identity(self) -> str:
        return self.path.split("/")[3]


@dataclass
class FakeTransport:
    """In-memory transport: records registrations and lets tests push deliveries."""

    registrations: list[FakeRegistration] = field(default_factory=list)
    events: list[tuple[str, str]] = field(default_factory=list)
    refuse_keys: set[str] = field(default_factory=set)
    initial: dict[str, list[Document]] = field(default_factory=dict)
    raise_on_cancel: set[str] = field(default_factory=set)

    def subscribe(
        self,
        path: str,
        on_snapshot: Callable[[list[Document]], None],
        on_error: Callable[[Exception], None],
    ) -> Callable[[], None]:
        key = path.rsplit("/", 1)[-1]
        if key in self.refuse_keys:
            raise ConnectionSetupError(f"refused {path}")
        registration = FakeRegistration(path=path, on_snapshot=on_snapshot, on_error=on_error)
        self.registrations.append(registration)
        self.events.append(("open", path))

        def _cancel() -> None:
            registration.cancel_calls += 1
            self.events.append(("cancel", path))
            if key in self.raise_on_cancel:
                raise RuntimeError(f"teardown of {path} failed")

        if key in self.initial:
            on_snapshot(list(self.initial[key]))
        return _cancel

    def latest(self, key: str, identity: str | None = None) -> FakeRegistration:
        for registration in reversed(self.registrations):
            if registration.key == key and (identity is None or registration.identity == identity):
                return registration
        raise LookupError(key)

    def emit(self, key: str, documents: Sequence[Document], *, identity: str | None = None) -> None:
        # Delivers even after cancel, like an in-flight transport callback.
        self.latest(key, identity).on_snapshot(list(documents))

    def fail(self, key: str, exc: Exception, *, identity: str | None = None) -> None:
        self.latest(key, identity).on_error(exc)

    def open_paths(self) -> list[str]:
        return [r.path for r in self.registrations if not r.cancelled]


def doc(doc_id: str, **data: Any) -> Document:
    return Document(id=doc_id, data=data)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_doc() -> Callable[..., Document]:
    return doc
