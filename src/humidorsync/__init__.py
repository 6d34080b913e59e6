"""humidorsync - real-time synchronization of a humidor inventory's remote collections."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("humidorsync")
except PackageNotFoundError:
    __version__ = "0+local"
from humidorsync._subscription import SubscriptionHandle, open_subscription
from humidorsync._transport import FirestoreRestTransport, Transport
from humidorsync.config import SyncConfig
from humidorsync.coordinator import SyncCoordinator
from humidorsync.descriptors import (
    CIGARS,
    DESCRIPTORS,
    HUMIDORS,
    JOURNAL_ENTRIES,
    PRIMARY_DESCRIPTOR,
    CollectionDescriptor,
)
from humidorsync.exceptions import (
    ConnectionSetupError,
    HumidorSyncError,
    StreamError,
    SyncConfigError,
    SyncTransportError,
)
from humidorsync.identity import IdentitySource
from humidorsync.models import Document, SyncError, SyncView
from humidorsync.state.store import CollectionStore

__all__ = [
    "__version__",
    "CIGARS",
    "CollectionDescriptor",
    "CollectionStore",
    "ConnectionSetupError",
    "DESCRIPTORS",
    "Document",
    "FirestoreRestTransport",
    "HUMIDORS",
    "HumidorSyncError",
    "IdentitySource",
    "JOURNAL_ENTRIES",
    "PRIMARY_DESCRIPTOR",
    "StreamError",
    "SubscriptionHandle",
    "SyncConfig",
    "SyncConfigError",
    "SyncCoordinator",
    "SyncError",
    "SyncTransportError",
    "SyncView",
    "Transport",
    "open_subscription",
]
