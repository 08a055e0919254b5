"""UpdateEngine — read, transform, then one conditional write."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from datastore_bridge.exceptions import (
    ErrorKind,
    RequestValidationError,
    UpdateCancelledError,
    UpstreamError,
)
from datastore_bridge.protocols.base import ReadResult
from datastore_bridge.validation import check_metadata, check_user_ids, encode_value, log_long_value

if TYPE_CHECKING:
    from datastore_bridge.config import DataStoreConfig
    from datastore_bridge.identity import StoreIdentity
    from datastore_bridge.models import KeyInfo
    from datastore_bridge.protocols.base import WireProtocol, WireRequest
    from datastore_bridge.transport import Transport

logger = logging.getLogger(__name__)

Transform = Callable[[Any, "KeyInfo | None"], Any]


async def read_current(transport: Transport, protocol: WireProtocol, request: WireRequest) -> ReadResult:
    """Send a read and parse it.  An upstream "key not found" reads as a missing key."""
    try:
        response = await transport.send(request)
    except UpstreamError as exc:
        if exc.kind is ErrorKind.KEY_NOT_FOUND:
            return ReadResult.missing()
        raise
    return protocol.parse_get(response)


@dataclass(frozen=True)
class UpdateOutcome:
    """Value written by an update and the key information the write produced."""

    value: Any
    key_info: KeyInfo | None = None
    user_ids: list[int] | None = None
    metadata: dict[str, Any] | None = None


class UpdateEngine:
    """Runs ``update_async`` for one store.

    Reads the key, calls ``transform(previous, key_info)`` synchronously and
    issues exactly one conditional write carrying what the read observed
    (v2 version, v1 USN or legacy expected value).  A lost race surfaces as
    :class:`~datastore_bridge.exceptions.ConflictError`; the engine never
    retries on its own.

    The transform returns either a bare value or ``(value, user_ids?, metadata?)``.
    Returning ``None`` or ``()`` cancels the update and nothing is written.
    """

    def __init__(
        self,
        identity: StoreIdentity,
        config: DataStoreConfig,
        protocol: WireProtocol,
        transport: Transport,
    ) -> None:
        self._identity = identity
        self._config = config
        self._protocol = protocol
        self._transport = transport

    async def run(self, key: str, transform: Transform) -> UpdateOutcome:
        logger.debug("Updating key %s", key)
        observed = await read_current(self._transport, self._protocol, self._protocol.build_get(key))

        value, user_ids, metadata = self._apply(transform, observed)

        user_ids = check_user_ids(user_ids, self._config)
        metadata = check_metadata(metadata, self._config)
        encoded = encode_value(value, self._identity, self._config)

        logger.debug("SetIf on key: %s", key)
        log_long_value(logger, encoded)
        request = self._protocol.build_set_if(key, encoded, observed, user_ids, metadata)
        response = await self._transport.send(request)
        key_info = self._protocol.parse_set_if(response, encoded, user_ids, metadata)
        if key_info is not None and observed.key_info is not None:
            # Attributes the transform left out keep their previous values.
            key_info = replace(
                key_info,
                user_ids=observed.key_info.get_user_ids() if user_ids is None else key_info.user_ids,
                metadata=observed.key_info.get_metadata() if metadata is None else key_info.metadata,
            )
        return UpdateOutcome(value=value, key_info=key_info, user_ids=user_ids, metadata=metadata)

    def _apply(self, transform: Transform, observed: ReadResult) -> tuple[Any, Any, Any]:
        previous = observed.value if observed.exists else None
        logger.debug("Running transform function, input: %r", previous)
        result = transform(previous, observed.key_info)

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            logger.debug("Transform function yielded, update is cancelled")
            raise UpdateCancelledError(ErrorKind.TRANSFORM_YIELDED)

        user_ids = metadata = None
        if isinstance(result, tuple):
            if len(result) > 3:
                raise RequestValidationError(
                    ErrorKind.CANNOT_STORE_DATA_IN_DATASTORE, f"a tuple of {len(result)} items"
                )
            value = result[0] if result else None
            user_ids = result[1] if len(result) > 1 else None
            metadata = result[2] if len(result) > 2 else None
        else:
            value = result

        if value is None:
            logger.debug("Transform function returned nil, update is cancelled")
            raise UpdateCancelledError()
        return value, user_ids, metadata
