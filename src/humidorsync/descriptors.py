"""Tracked remote collections.

The application tracks exactly three per-user collections.  ``cigars`` is
the primary collection: its first snapshot (or first failure) is the
"initial load complete" signal for the whole dataset.
"""

from __future__ import annotations

from dataclasses import dataclass

from humidorsync.exceptions import ConnectionSetupError

#: Path template shared by every tracked collection.
PATH_TEMPLATE = "artifacts/{app_id}/users/{identity}/{key}"


@dataclass(frozen=True)
class CollectionDescriptor:
    """Static identifier and path template for one tracked collection."""

    key: str

    def path(self, *, app_id: str, identity: str) -> str:
        """Resolve the remote path for *identity*."""
        if not app_id:
            raise ConnectionSetupError(f"No app id to address {self.key}", descriptor=self.key)
        if not identity:
            raise ConnectionSetupError(f"No identity to address {self.key}", descriptor=self.key)
        return PATH_TEMPLATE.format(app_id=app_id, identity=identity, key=self.key)


HUMIDORS = CollectionDescriptor("humidors")
CIGARS = CollectionDescriptor("cigars")
JOURNAL_ENTRIES = CollectionDescriptor("journalEntries")

#: Subscription order used by the coordinator.
DESCRIPTORS: tuple[CollectionDescriptor, ...] = (HUMIDORS, CIGARS, JOURNAL_ENTRIES)

#: Collection whose first delivery or failure ends the loading state.
PRIMARY_DESCRIPTOR = CIGARS


def get_descriptor(key: str) -> CollectionDescriptor:
    for descriptor in DESCRIPTORS:
        if descriptor.key == key:
            return descriptor
    raise KeyError(key)
