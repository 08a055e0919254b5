"""Cursor-based pagination over the listing endpoints."""

from __future__ import annotations

import logging
import weakref
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import quote

from datastore_bridge.exceptions import DataStoreError, ErrorKind, UpstreamError
from datastore_bridge.protocols.base import PageResult

if TYPE_CHECKING:
    import httpx

    from datastore_bridge.models import DataStoreInfo, DataStoreKey, SortedEntry, VersionRecord
    from datastore_bridge.protocols.base import WireProtocol, WireRequest
    from datastore_bridge.transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Pages(ABC, Generic[T]):
    """A page of results plus the cursor of the next one.

    Starts with an empty page; the creating store fetches the first page
    before handing the object out.  Each :meth:`advance_to_next_page` re-issues
    the original query with ``&exclusiveStartKey=<cursor>`` appended and
    replaces the page and cursor together.  Once a fetch returns no cursor
    the object is finished and further advances are no-ops.

    The owning store is held weakly.  Advancing after it has been collected
    raises ``ORDERED_DATASTORE_DELETED``.

    Not safe for concurrent advancement.
    """

    def __init__(
        self,
        owner: Any,
        protocol: WireProtocol,
        transport: Transport,
        request: WireRequest,
    ) -> None:
        self._owner = weakref.ref(owner)
        self._protocol = protocol
        self._transport = transport
        self._base_url = request.url
        self._items: list[T] = []
        self._cursor = ""
        self._finished = False

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def cursor(self) -> str:
        return self._cursor

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_current_page(self) -> list[T]:
        return list(self._items)

    def _next_url(self) -> str:
        if not self._cursor:
            return self._base_url
        return f"{self._base_url}&exclusiveStartKey={quote(self._cursor, safe='')}"

    @abstractmethod
    def _parse(self, response: httpx.Response) -> PageResult[T]: ...

    async def _fetch(self) -> PageResult[T]:
        if self._owner() is None:
            raise DataStoreError(ErrorKind.ORDERED_DATASTORE_DELETED)
        response = await self._transport.get(self._next_url())
        return self._parse(response)

    async def advance_to_next_page(self) -> bool:
        """Fetch the next page.

        Returns:
            ``True`` if a page was fetched, ``False`` if already finished.
        """
        if self._finished:
            logger.warning("No pages to advance to")
            return False
        page = await self._fetch()
        self._items = page.items
        self._cursor = page.cursor
        self._finished = not page.cursor
        return True

    def __aiter__(self) -> AsyncIterator[list[T]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[list[T]]:
        yield self.get_current_page()
        while await self.advance_to_next_page():
            yield self.get_current_page()


class DataStorePages(Pages["SortedEntry"]):
    """Sorted entries of an ``OrderedDataStore``."""

    def _parse(self, response: httpx.Response) -> PageResult[SortedEntry]:
        return self._protocol.parse_sorted_page(response)


class DataStoreKeyPages(Pages["DataStoreKey"]):
    def _parse(self, response: httpx.Response) -> PageResult[DataStoreKey]:
        return self._protocol.parse_key_page(response)


class DataStoreVersionPages(Pages["VersionRecord"]):
    """Version history of one key.  An unknown key yields a single empty page."""

    def _parse(self, response: httpx.Response) -> PageResult[VersionRecord]:
        return self._protocol.parse_version_page(response)

    async def _fetch(self) -> PageResult[VersionRecord]:
        try:
            return await super()._fetch()
        except UpstreamError as exc:
            if exc.kind is ErrorKind.KEY_NOT_FOUND:
                return PageResult([], "")
            raise


class DataStoreListingPages(Pages["DataStoreInfo"]):
    """Data stores of the session's universe."""

    def _parse(self, response: httpx.Response) -> PageResult[DataStoreInfo]:
        return self._protocol.parse_store_page(response)
