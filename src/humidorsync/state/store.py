"""In-memory collection stores.

Only the coordinator writes to a store; any number of readers may call
``read()``.
"""

from __future__ import annotations

from collections.abc import Iterable

from humidorsync.models.document import Document


class CollectionStore:
    """Full-state holder for one collection.

    Every ``replace`` is a total overwrite: the visible contents become
    exactly the delivered sequence, in delivery order.  There is no merge
    and no validation.
    """

    def __init__(self, key: str) -> None:
        self._key = key
        self._documents: tuple[Document, ...] = ()

    @property
    def key(self) -> str:
        return self._key

    def replace(self, documents: Iterable[Document]) -> None:
        self._documents = tuple(documents)

    def read(self) -> tuple[Document, ...]:
        return self._documents

    def clear(self) -> None:
        self._documents = ()

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"CollectionStore({self._key!r}, documents={len(self._documents)})"
