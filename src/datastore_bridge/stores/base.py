"""GlobalDataStore — per-key operations shared by every store kind."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from datastore_bridge.events import UpdateChannel
from datastore_bridge.exceptions import ErrorKind, UpstreamError
from datastore_bridge.protocols.builder import RequestBuilder
from datastore_bridge.update import UpdateEngine, read_current
from datastore_bridge.validation import (
    check_delta,
    check_key,
    check_metadata,
    check_user_ids,
    encode_value,
    log_long_value,
)

if TYPE_CHECKING:
    from datastore_bridge.access import ApiAccessChecker
    from datastore_bridge.config import DataStoreConfig
    from datastore_bridge.events import Subscription, UpdateCallback
    from datastore_bridge.identity import StoreIdentity
    from datastore_bridge.models import KeyInfo, SetOptions
    from datastore_bridge.protocols.base import WireProtocol
    from datastore_bridge.transport import Transport
    from datastore_bridge.update import Transform

logger = logging.getLogger(__name__)


class GlobalDataStore:
    """A key/value store addressed by ``(name, scope)``.

    Every method validates its key before building a request.  Reads of a
    missing key return ``(None, None)``.  Successful writes are published to
    :meth:`on_update` subscribers of that key.

    Stores are normally obtained from :class:`~datastore_bridge.DataStoreService`,
    which guarantees one instance per identity.

    Parameters:
        identity: Name, scope and mode of the store.
        config: Limits and protocol selection.
        transport: Shared outbound transport.
        access: Optional API-access gate consulted before writes.
        protocol: Explicit wire protocol; resolved through
            :class:`RequestBuilder` when omitted.
    """

    _versioned: bool = False

    def __init__(
        self,
        identity: StoreIdentity,
        config: DataStoreConfig,
        transport: Transport,
        *,
        access: ApiAccessChecker | None = None,
        protocol: WireProtocol | None = None,
    ) -> None:
        self.identity = identity
        self.config = config
        self.transport = transport
        self.protocol = protocol or RequestBuilder.create(
            identity, config, transport.session, versioned=self._versioned
        )
        self._access = access
        self._updates = UpdateEngine(identity, config, self.protocol, transport)
        self._channel = UpdateChannel()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.identity.name!r}, scope={self.identity.scope!r}, "
            f"protocol={self.protocol.generation.value!r})"
        )

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def scope(self) -> str:
        return self.identity.scope

    # ── helpers ───────────────────────────────────────────────

    def _check_key(self, key: str) -> None:
        check_key(key, self.identity, self.config)

    async def _require_access(self) -> None:
        if self._access is not None:
            await self._access.require()

    # ── operations ────────────────────────────────────────────

    async def get_async(self, key: str) -> tuple[Any, KeyInfo | None]:
        """Return the value stored under *key* and its key information."""
        self._check_key(key)
        logger.debug("GetAsync on key %s", key)
        read = await read_current(self.transport, self.protocol, self.protocol.build_get(key))
        return read.value, read.key_info

    async def set_async(
        self,
        key: str,
        value: Any,
        user_ids: list[int] | None = None,
        options: SetOptions | None = None,
    ) -> str | None:
        """Unconditionally write *value*.

        Returns:
            The new version token (v2 version or v1 USN), ``None`` on the
            legacy protocol.
        """
        self._check_key(key)
        user_ids = check_user_ids(user_ids, self.config)
        metadata = check_metadata(options.get_metadata() if options else None, self.config)
        encoded = encode_value(value, self.identity, self.config)
        await self._require_access()

        logger.debug("SetAsync on key: %s", key)
        log_long_value(logger, encoded)
        response = await self.transport.send(
            self.protocol.build_set(key, encoded, user_ids, metadata)
        )
        key_info = self.protocol.parse_set(response, user_ids, metadata)
        await self._channel.publish(key, value)
        return key_info.version if key_info else None

    async def increment_async(
        self,
        key: str,
        delta: int = 1,
        user_ids: list[int] | None = None,
        options: SetOptions | None = None,
    ) -> tuple[int | float, KeyInfo | None]:
        """Add *delta* to the number stored under *key* and return the new number."""
        self._check_key(key)
        delta = check_delta(delta)
        user_ids = check_user_ids(user_ids, self.config)
        metadata = check_metadata(options.get_metadata() if options else None, self.config)
        await self._require_access()

        logger.debug("IncrementAsync on key %s by %d", key, delta)
        response = await self.transport.send(
            self.protocol.build_increment(key, delta, user_ids, metadata)
        )
        value, key_info = self.protocol.parse_increment(response)
        await self._channel.publish(key, value)
        return value, key_info

    async def update_async(self, key: str, transform: Transform) -> tuple[Any, KeyInfo | None]:
        """Read-modify-write *key* through *transform* with one conditional write.

        Raises:
            UpdateCancelledError: The transform returned nothing (or a coroutine).
            ConflictError: Another writer changed the key between read and write.
        """
        self._check_key(key)
        await self._require_access()
        outcome = await self._updates.run(key, transform)
        await self._channel.publish(key, outcome.value)
        return outcome.value, outcome.key_info

    async def remove_async(self, key: str) -> tuple[Any, KeyInfo | None]:
        """Delete *key*, returning the value it held (``None`` if it held none)."""
        self._check_key(key)
        await self._require_access()
        logger.debug("RemoveAsync on key %s", key)
        try:
            response = await self.transport.send(self.protocol.build_remove(key))
        except UpstreamError as exc:
            if exc.kind is ErrorKind.KEY_NOT_FOUND:
                return None, None
            raise
        previous, key_info = self.protocol.parse_remove(response)
        await self._channel.publish(key, None)
        return previous, key_info

    def on_update(self, key: str, callback: UpdateCallback) -> Subscription:
        """Call *callback* with the new value whenever this store writes *key*."""
        self._check_key(key)
        return self._channel.subscribe(key, callback)
