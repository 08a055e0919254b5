"""DataStore — a store on the versioned object API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from datastore_bridge.models import SortDirection
from datastore_bridge.pages import DataStoreKeyPages, DataStoreVersionPages
from datastore_bridge.stores.base import GlobalDataStore
from datastore_bridge.update import read_current
from datastore_bridge.validation import check_page_size

if TYPE_CHECKING:
    from datastore_bridge.models import KeyInfo

logger = logging.getLogger(__name__)


class DataStore(GlobalDataStore):
    """Versioned store: every write creates a version that can be read back.

    Adds version reads and deletes, key listing and version listing on top
    of :class:`GlobalDataStore`.
    """

    _versioned = True

    def _check_page_size(self, page_size: int) -> int:
        # 0 lets the service pick its default page size
        return page_size if page_size == 0 else check_page_size(page_size, self.config)

    async def get_version_async(self, key: str, version: str) -> tuple[Any, KeyInfo | None]:
        """Return the value of *key* as of *version*."""
        self._check_key(key)
        logger.debug("GetVersionAsync on key %s", key)
        request = self.protocol.build_get_version(key, version)
        read = await read_current(self.transport, self.protocol, request)
        return read.value, read.key_info

    async def remove_version_async(self, key: str, version: str) -> None:
        """Permanently delete one version of *key*.  No tombstone is created."""
        self._check_key(key)
        request = self.protocol.build_remove_version(key, version)
        await self._require_access()
        logger.debug("RemoveVersionAsync on key %s version %s", key, version)
        await self.transport.send(request)

    async def list_keys_async(self, prefix: str = "", page_size: int = 0) -> DataStoreKeyPages:
        """Enumerate keys starting with *prefix* (scope-prefixed unless all-scopes)."""
        request = self.protocol.build_list_keys(prefix, self._check_page_size(page_size))
        pages = DataStoreKeyPages(self, self.protocol, self.transport, request)
        await pages.advance_to_next_page()
        return pages

    async def list_versions_async(
        self,
        key: str,
        sort_direction: SortDirection = SortDirection.ASCENDING,
        min_date: datetime | None = None,
        max_date: datetime | None = None,
        page_size: int = 0,
    ) -> DataStoreVersionPages:
        """Enumerate the versions of *key*, optionally bounded by creation time."""
        self._check_key(key)
        request = self.protocol.build_list_versions(
            key, sort_direction, min_date, max_date, self._check_page_size(page_size)
        )
        pages = DataStoreVersionPages(self, self.protocol, self.transport, request)
        await pages.advance_to_next_page()
        return pages
