"""ApiAccessChecker — whether the place may use the persistence APIs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from datastore_bridge import codec
from datastore_bridge._internal.clock import Clock, SystemClock, seconds_since
from datastore_bridge.exceptions import DataStoreError, ErrorKind, UpstreamError

if TYPE_CHECKING:
    from datastore_bridge.config import DataStoreConfig
    from datastore_bridge.transport import Transport

logger = logging.getLogger(__name__)

ACCESS_FIELD = "StudioAccessToApisAllowed"


class ApiAccessChecker:
    """Queries ``{api_base_url}/universes/get-info?placeId=`` and caches the answer.

    Anything other than a JSON object whose ``StudioAccessToApisAllowed`` is
    ``true`` counts as denied, including a failed request.  The answer is
    reused for ``api_access_recheck_seconds``.

    Parameters:
        transport: Shared transport (session headers included).
        config: Supplies the API root, the TTL and the ``check_api_access`` switch.
        clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        transport: Transport,
        config: DataStoreConfig,
        clock: Clock | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._clock = clock or SystemClock()
        self._allowed: bool | None = None
        self._checked_at: datetime | None = None

    @property
    def url(self) -> str:
        root = self._config.api_base_url.rstrip("/")
        return f"{root}/universes/get-info?placeId={self._transport.session.place_id}"

    def _is_fresh(self) -> bool:
        if self._allowed is None or self._checked_at is None:
            return False
        return seconds_since(self._clock, self._checked_at) < self._config.api_access_recheck_seconds

    async def is_enabled(self) -> bool:
        if not self._config.check_api_access:
            return True
        if self._is_fresh():
            return bool(self._allowed)

        allowed = False
        try:
            response = await self._transport.get(self.url)
        except UpstreamError as exc:
            logger.warning("API access check failed, treating access as disabled: %s", exc)
        else:
            body = codec.deserialize(response.content)
            if body.ok and isinstance(body.value, dict):
                allowed = body.value.get(ACCESS_FIELD) is True

        self._allowed = allowed
        self._checked_at = self._clock.now()
        logger.debug("API access for place %s: %s", self._transport.session.place_id, allowed)
        return allowed

    async def require(self) -> None:
        """Raise ``NO_API_ACCESS_ALLOWED`` unless API access is enabled."""
        if not await self.is_enabled():
            raise DataStoreError(ErrorKind.NO_API_ACCESS_ALLOWED)

    def invalidate(self) -> None:
        self._allowed = None
        self._checked_at = None
