"""Base model shared by every humidorsync data model.

Remote collections and the consuming screens both use camelCase keys
(``journalEntries``), while Python code uses snake_case.  Every model
inherits ``alias_generator=to_camel`` so either spelling is accepted on
input and ``model_dump(by_alias=True)`` produces the remote spelling.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SyncBaseModel(BaseModel):
    """Frozen camelCase-aware base model."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )
