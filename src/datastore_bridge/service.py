"""DataStoreService — the store registry and entry point."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from datastore_bridge.access import ApiAccessChecker
from datastore_bridge.config import DataStoreConfig, ProtocolGeneration
from datastore_bridge.identity import StoreIdentity, check_name, check_name_and_scope
from datastore_bridge.pages import DataStoreListingPages
from datastore_bridge.protocols.builder import RequestBuilder
from datastore_bridge.stores import DataStore, GlobalDataStore, OrderedDataStore
from datastore_bridge.transport import Transport
from datastore_bridge.validation import check_page_size

if TYPE_CHECKING:
    import httpx

    from datastore_bridge._internal.clock import Clock
    from datastore_bridge.models import DataStoreOptions
    from datastore_bridge.session import SessionContext

logger = logging.getLogger(__name__)

_LEGACY_CACHE_KEY = ("legacy", "", "")


class DataStoreService:
    """Hands out store facades, one instance per ``(name, scope)``.

    Standard and versioned stores share that instance: whichever was requested
    first is returned for both.  Ordered stores are cached separately.

    Construction on a cache miss is idempotent and never blocks: concurrent
    misses for the same identity converge on whichever instance was cached
    first.  Registries are independent objects, so tests can build as many
    isolated ones as they like.

    Parameters:
        session: Caller identity.  ``place_id`` must be positive.
        config: Options; defaults to :class:`DataStoreConfig` defaults.
        client: Optional ``httpx.AsyncClient`` shared by every store.  When
            omitted the service owns its client and closes it in :meth:`aclose`.
        clock: Time source for the API-access cache.

    Example:
        async with DataStoreService(SessionContext.from_env()) as service:
            store = service.get_data_store("PlayerData")
            await store.set_async("user/1", {"coins": 10})
    """

    def __init__(
        self,
        session: SessionContext,
        config: DataStoreConfig | None = None,
        client: httpx.AsyncClient | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        session.validate()
        self._session = session
        self._config = config or DataStoreConfig()
        self._transport = Transport(session, self._config, client)
        self._access = ApiAccessChecker(self._transport, self._config, clock)
        self._stores: dict[tuple[str, str, str], GlobalDataStore] = {}

    async def __aenter__(self) -> DataStoreService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    @property
    def config(self) -> DataStoreConfig:
        return self._config

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def access(self) -> ApiAccessChecker:
        return self._access

    # ── registry ─────────────────────────────────────────────

    def get_store(
        self,
        name: str,
        scope: str = "global",
        *,
        ordered: bool = False,
        legacy: bool = False,
        versioned: bool = False,
        all_scopes: bool = False,
    ) -> GlobalDataStore:
        """Return the cached store for this identity, creating it on first use.

        Raises:
            DataStoreConfigError: If the name or scope is empty or too long.
        """
        if legacy:
            return self.get_global_data_store()

        if all_scopes:
            # Keys carry their own scope; the store has none.
            check_name(name, self._config)
            scope = ""
        else:
            check_name_and_scope(name, scope, self._config)

        if ordered:
            kind, cls = "ordered", OrderedDataStore
        else:
            # Standard and versioned stores share one slot per (name, scope).
            kind, cls = "standard", DataStore if versioned else GlobalDataStore

        cache_key = (kind, name, scope)
        store = self._stores.get(cache_key)
        if store is None:
            identity = StoreIdentity(
                name=name, scope=scope, is_ordered=ordered, all_scopes=all_scopes
            )
            candidate = cls(identity, self._config, self._transport, access=self._access)
            store = self._stores.setdefault(cache_key, candidate)
            logger.debug("Created %r", store)
        return store

    def get_data_store(
        self,
        name: str,
        scope: str = "global",
        options: DataStoreOptions | None = None,
    ) -> GlobalDataStore:
        """Named store.  Versioned unless *options* or the config say otherwise."""
        versioned = options.wants_versioned() if options else None
        if versioned is None:
            versioned = self._config.versioned_by_default
        return self.get_store(
            name,
            scope,
            versioned=versioned,
            all_scopes=bool(options and options.all_scopes),
        )

    def get_ordered_data_store(self, name: str, scope: str = "global") -> OrderedDataStore:
        return cast(OrderedDataStore, self.get_store(name, scope, ordered=True))

    def get_global_data_store(self) -> GlobalDataStore:
        """The unnamed legacy store, one per registry."""
        store = self._stores.get(_LEGACY_CACHE_KEY)
        if store is None:
            candidate = GlobalDataStore(
                StoreIdentity.legacy(), self._config, self._transport, access=self._access
            )
            store = self._stores.setdefault(_LEGACY_CACHE_KEY, candidate)
        return store

    def cached_store_count(self) -> int:
        return len(self._stores)

    # ── listing ──────────────────────────────────────────────

    async def list_data_stores_async(
        self, prefix: str = "", page_size: int = 0
    ) -> DataStoreListingPages:
        """Enumerate the data stores of the session's universe (v2 only)."""
        if page_size != 0:
            check_page_size(page_size, self._config)
        await self._access.require()
        protocol = RequestBuilder.create(
            StoreIdentity.legacy(), self._config, self._session, ProtocolGeneration.V2
        )
        request = protocol.build_list_data_stores(prefix, page_size)
        pages = DataStoreListingPages(self, protocol, self._transport, request)
        await pages.advance_to_next_page()
        return pages
