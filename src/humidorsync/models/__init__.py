"""Data models shared by the synchronization layer and its consumers."""

from humidorsync.models._base import SyncBaseModel
from humidorsync.models.document import Document
from humidorsync.models.view import SyncError, SyncView

__all__ = [
    "Document",
    "SyncBaseModel",
    "SyncError",
    "SyncView",
]
