"""StoreIdentity — the immutable description of one logical data store."""

from __future__ import annotations

from dataclasses import dataclass

from datastore_bridge.config import DataStoreConfig
from datastore_bridge.exceptions import DataStoreConfigError

LEGACY_STORE_NAME = ""
LEGACY_STORE_SCOPE = "u"


@dataclass(frozen=True)
class StoreIdentity:
    """Immutable description of one logical data store.

    Attributes:
        name:       Store name.  Empty only for the unnamed legacy store.
        scope:      Scope every key is placed under unless ``all_scopes``.
        is_ordered: Numeric values only, supports sorted queries.
        is_legacy:  The unnamed global store; swaps which request field
                    carries the key.
        all_scopes: Keys self-encode their scope as ``scope/key``.
    """

    name: str
    scope: str = "global"
    is_ordered: bool = False
    is_legacy: bool = False
    all_scopes: bool = False

    @property
    def type_name(self) -> str:
        return "sorted" if self.is_ordered else "standard"

    @property
    def display_kind(self) -> str:
        return "OrderedDataStore" if self.is_ordered else "DataStore"

    def object_key(self, key: str) -> str:
        """The key as the service addresses it (``scope/key`` unless all-scopes)."""
        return key if self.all_scopes else f"{self.scope}/{key}"

    @classmethod
    def legacy(cls) -> StoreIdentity:
        return cls(name=LEGACY_STORE_NAME, scope=LEGACY_STORE_SCOPE, is_legacy=True)


def check_name(name: str, config: DataStoreConfig) -> None:
    if len(name) == 0:
        raise DataStoreConfigError("DataStore name can't be empty string")
    if len(name) > config.key_length_limit:
        raise DataStoreConfigError("DataStore name is too long")


def check_scope(scope: str, config: DataStoreConfig) -> None:
    if len(scope) == 0:
        raise DataStoreConfigError("DataStore scope can't be empty string")
    if len(scope) > config.key_length_limit:
        raise DataStoreConfigError("DataStore scope is too long")


def check_name_and_scope(name: str, scope: str, config: DataStoreConfig) -> None:
    """Reject unusable store names and scopes at construction time."""
    check_scope(scope, config)
    check_name(name, config)
