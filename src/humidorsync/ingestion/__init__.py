"""Ingestion layer.

Adapters that turn raw transport payloads into :class:`~humidorsync.models.Document`
sequences ready to be applied to a collection store.
"""

__all__: list[str] = []
