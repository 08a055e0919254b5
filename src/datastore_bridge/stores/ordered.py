"""OrderedDataStore — numeric values with sorted range queries."""

from __future__ import annotations

import logging

from datastore_bridge.pages import DataStorePages
from datastore_bridge.stores.base import GlobalDataStore
from datastore_bridge.validation import check_bound, check_page_size

logger = logging.getLogger(__name__)


class OrderedDataStore(GlobalDataStore):
    """Store whose values are plain numbers, readable in sorted order.

    Never versioned: operations return ``KeyInfo`` only where the protocol
    generation reports a USN.
    """

    async def get_sorted_async(
        self,
        ascending: bool,
        page_size: int,
        min_value: int | None = None,
        max_value: int | None = None,
    ) -> DataStorePages:
        """Return the first page of entries sorted by value.

        Args:
            ascending: Sort order.
            page_size: Entries per page, ``1..max_page_size``.
            min_value: Inclusive lower bound (whole number).
            max_value: Inclusive upper bound (whole number).
        """
        page_size = check_page_size(page_size, self.config)
        min_value = check_bound(min_value)
        max_value = check_bound(max_value)
        logger.debug(
            "GetSortedAsync on %s ascending=%s pageSize=%d", self.name, ascending, page_size
        )
        request = self.protocol.build_get_sorted_page(ascending, page_size, min_value, max_value)
        pages = DataStorePages(self, self.protocol, self.transport, request)
        await pages.advance_to_next_page()
        return pages
