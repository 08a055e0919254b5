"""datastore_bridge — an HTTP client for the game persistence service.

Stores are obtained from a :class:`DataStoreService`, one instance per
identity.  Every operation is a coroutine over one shared ``httpx`` client.
"""

import logging

from datastore_bridge.config import DataStoreConfig, ProtocolGeneration
from datastore_bridge.events import Subscription, UpdateChannel
from datastore_bridge.exceptions import (
    ConflictError,
    DataStoreConfigError,
    DataStoreError,
    ErrorKind,
    RequestValidationError,
    ResponseError,
    UpdateCancelledError,
    UpstreamError,
)
from datastore_bridge.models import (
    DataStoreInfo,
    DataStoreKey,
    DataStoreOptions,
    KeyInfo,
    SetOptions,
    SortDirection,
    SortedEntry,
    VersionRecord,
)
from datastore_bridge.pages import (
    DataStoreKeyPages,
    DataStoreListingPages,
    DataStorePages,
    DataStoreVersionPages,
    Pages,
)
from datastore_bridge.service import DataStoreService
from datastore_bridge.session import SessionContext
from datastore_bridge.stores import DataStore, GlobalDataStore, OrderedDataStore

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConflictError",
    "DataStore",
    "DataStoreConfig",
    "DataStoreConfigError",
    "DataStoreError",
    "DataStoreInfo",
    "DataStoreKey",
    "DataStoreKeyPages",
    "DataStoreListingPages",
    "DataStoreOptions",
    "DataStorePages",
    "DataStoreService",
    "DataStoreVersionPages",
    "ErrorKind",
    "GlobalDataStore",
    "KeyInfo",
    "OrderedDataStore",
    "Pages",
    "ProtocolGeneration",
    "RequestValidationError",
    "ResponseError",
    "SessionContext",
    "SetOptions",
    "SortDirection",
    "SortedEntry",
    "Subscription",
    "UpdateCancelledError",
    "UpdateChannel",
    "UpstreamError",
    "VersionRecord",
]
