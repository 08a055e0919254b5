"""Store facades: simple, versioned and ordered."""

from datastore_bridge.stores.base import GlobalDataStore
from datastore_bridge.stores.ordered import OrderedDataStore
from datastore_bridge.stores.versioned import DataStore

__all__ = ["DataStore", "GlobalDataStore", "OrderedDataStore"]
