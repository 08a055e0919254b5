"""Transport — the single outbound HTTP client shared by every store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from datastore_bridge.protocols.base import WireRequest
from datastore_bridge.taxonomy import map_response_error, map_transport_error

if TYPE_CHECKING:
    from datastore_bridge.config import DataStoreConfig
    from datastore_bridge.session import SessionContext

logger = logging.getLogger(__name__)


class Transport:
    """Sends :class:`WireRequest` objects with the session headers attached.

    Non-2xx responses and transport failures are raised as
    :class:`~datastore_bridge.exceptions.UpstreamError` subclasses, so callers
    only ever see successful responses.

    Parameters:
        session: Caller identity attached to every request.
        config: Supplies the default request timeout.
        client: Optional pre-built ``httpx.AsyncClient``.  When omitted the
            transport creates one and closes it in :meth:`aclose`.
    """

    def __init__(
        self,
        session: SessionContext,
        config: DataStoreConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._session = session
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.request_timeout)

    @property
    def session(self) -> SessionContext:
        return self._session

    async def send(self, request: WireRequest) -> httpx.Response:
        headers = self._session.headers()
        headers.update(request.headers)
        logger.debug("%s %s", request.method, request.url)
        try:
            response = await self._client.request(
                request.method,
                request.url,
                content=request.body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise map_transport_error(exc) from exc

        if response.is_error:
            raise map_response_error(response)
        return response

    async def get(self, url: str) -> httpx.Response:
        """Plain GET used by pagination and the access check."""
        return await self.send(WireRequest("GET", url))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
