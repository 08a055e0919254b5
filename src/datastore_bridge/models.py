"""Value objects returned by store operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class SortDirection(StrEnum):
    ASCENDING = "Ascending"
    DESCENDING = "Descending"


@dataclass(frozen=True)
class KeyInfo:
    """Version information attached to a key.

    Attributes:
        version:      Opaque version token (v2 etag or v1 USN).  Pass it back
                      verbatim as a write precondition.
        created_time: When the key was first created (v2 only).
        updated_time: When this version was created (v2 only).
        user_ids:     User ids associated with the key.
        metadata:     Caller-defined attributes associated with the key.
    """

    version: str
    created_time: datetime | None = None
    updated_time: datetime | None = None
    user_ids: list[int] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def get_user_ids(self) -> list[int]:
        return list(self.user_ids)

    def get_metadata(self) -> dict[str, Any]:
        return dict(self.metadata)


@dataclass(frozen=True)
class VersionRecord:
    """One entry of a key's version history."""

    version: str
    created_time: datetime
    is_deleted: bool = False
    content_length: int = 0


@dataclass(frozen=True)
class DataStoreKey:
    """One entry of a key listing."""

    key_name: str


@dataclass(frozen=True)
class DataStoreInfo:
    """One entry of a data store listing."""

    name: str
    created_time: datetime | None = None
    updated_time: datetime | None = None


@dataclass(frozen=True)
class SortedEntry:
    """One entry of an ordered store page."""

    key: str
    value: int | float


@dataclass
class SetOptions:
    """Per-write options for ``set_async`` and ``increment_async``."""

    metadata: dict[str, Any] = field(default_factory=dict)

    def get_metadata(self) -> dict[str, Any]:
        return self.metadata

    def set_metadata(self, metadata: dict[str, Any]) -> None:
        self.metadata = metadata


@dataclass
class DataStoreOptions:
    """Options accepted by ``DataStoreService.get_data_store``.

    Attributes:
        all_scopes:            Keys carry their own ``scope/`` prefix.
        experimental_features: ``{"v2": True}`` opts into the versioned API,
                               ``{"v2": False}`` opts out of it.
    """

    all_scopes: bool = False
    experimental_features: dict[str, Any] = field(default_factory=dict)

    def wants_versioned(self) -> bool | None:
        flag = self.experimental_features.get("v2")
        return flag if isinstance(flag, bool) else None
