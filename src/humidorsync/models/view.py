"""Consumer-facing read-only projection of the synchronization state."""

from __future__ import annotations

from humidorsync.descriptors import get_descriptor
from humidorsync.models._base import SyncBaseModel
from humidorsync.models.document import Document


class SyncError(SyncBaseModel):
    """First failure recorded in the current epoch.

    ``cause`` is a machine code such as ``permission-denied``; ``message``
    is the human readable text the presentation layer may render.
    """

    descriptor: str
    cause: str
    message: str = ""


class SyncView(SyncBaseModel):
    """Snapshot of everything a screen may read.

    Instances are immutable; the coordinator builds a new one after every
    transition.
    """

    humidors: tuple[Document, ...] = ()
    cigars: tuple[Document, ...] = ()
    journal_entries: tuple[Document, ...] = ()
    loading: bool = True
    error: SyncError | None = None
    identity: str | None = None
    epoch: int = 0

    def documents(self, key: str) -> tuple[Document, ...]:
        """Return the documents of the collection named *key* (e.g. ``"journalEntries"``)."""
        descriptor = get_descriptor(key)
        for name, field in type(self).model_fields.items():
            if descriptor.key in (name, field.alias):
                return getattr(self, name)
        raise KeyError(key)
