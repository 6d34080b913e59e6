"""Remote document model."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from humidorsync.models._base import SyncBaseModel


class Document(SyncBaseModel):
    """One remote document: a stable identifier plus its field values.

    The identifier is assigned by the remote store, is unique within its
    collection and does not change across updates.
    """

    id: str
    data: dict[str, Any] = Field(default_factory=dict)

    def flatten(self) -> dict[str, Any]:
        """Return ``{"id": ..., **data}``, the shape screens consume."""
        return {"id": self.id, **self.data}
