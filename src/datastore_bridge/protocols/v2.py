"""V2Protocol — the versioned object-store endpoints."""

from __future__ import annotations

import base64
import hashlib
import json
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError

from datastore_bridge.config import ProtocolGeneration
from datastore_bridge.models import DataStoreInfo, DataStoreKey, KeyInfo, VersionRecord
from datastore_bridge.protocols.base import PageResult, ReadResult, WireProtocol, WireRequest
from datastore_bridge.protocols.common import isoformat, to_number
from datastore_bridge.schema import (
    KeyListSchema,
    ObjectHeadersSchema,
    ObjectWriteSchema,
    StoreListSchema,
    VersionListSchema,
)
from datastore_bridge.taxonomy import malformed

if TYPE_CHECKING:
    from datetime import datetime

    import httpx

    from datastore_bridge.models import SortDirection

ATTRIBUTES_HEADER = "Roblox-Object-Attributes"
USER_IDS_HEADER = "Roblox-Object-UserIds"


def content_md5(body: str) -> str:
    """Base64 MD5 digest of *body*, sent as ``Content-MD5``."""
    return base64.b64encode(hashlib.md5(body.encode("utf-8")).digest()).decode("ascii")


class V2Protocol(WireProtocol):
    """``{base}/v2/persistence/{universeId}/datastores/...``.

    Objects are addressed by ``datastore`` and ``objectKey`` (``scope/key``
    unless the store is in all-scopes mode).  Key information travels in
    response headers for reads and in the JSON body for writes.
    """

    generation: ClassVar[ProtocolGeneration] = ProtocolGeneration.V2

    @property
    def root(self) -> str:
        return f"{self.config.service_root()}/v2/persistence/{self.session.universe_id}/datastores"

    def _object_query(self, key: str) -> str:
        object_key = self.encode(self.identity.object_key(key))
        return f"datastore={self.name_q}&objectKey={object_key}"

    def _object_url(self, key: str, suffix: str = "", extra: str = "") -> str:
        return f"{self.root}/objects/object{suffix}?{self._object_query(key)}{extra}"

    def _attribute_headers(
        self, user_ids: list[int] | None, metadata: dict[str, Any] | None
    ) -> dict[str, str]:
        return {
            ATTRIBUTES_HEADER: json.dumps(metadata or {}, separators=(",", ":")),
            USER_IDS_HEADER: json.dumps(user_ids or [], separators=(",", ":")),
        }

    def _write_headers(
        self, encoded: str, user_ids: list[int] | None, metadata: dict[str, Any] | None
    ) -> dict[str, str]:
        headers = {"Content-MD5": content_md5(encoded), "Content-Type": "*/*"}
        headers.update(self._attribute_headers(user_ids, metadata))
        return headers

    def _header_key_info(self, response: httpx.Response) -> KeyInfo:
        try:
            info = ObjectHeadersSchema.model_validate(dict(response.headers))
        except ValidationError as exc:
            raise malformed(detail=str(exc)) from exc
        return KeyInfo(
            version=info.etag,
            created_time=info.created_time,
            updated_time=info.version_created_time,
            user_ids=info.user_ids,
            metadata=info.attributes,
        )

    def _body_key_info(
        self,
        response: httpx.Response,
        user_ids: list[int] | None,
        metadata: dict[str, Any] | None,
    ) -> KeyInfo:
        try:
            body = ObjectWriteSchema.model_validate(self.json_body(response))
        except ValidationError as exc:
            raise malformed(detail=str(exc)) from exc
        return KeyInfo(
            version=body.version,
            created_time=body.object_created_time,
            updated_time=body.created_time,
            user_ids=list(user_ids or []),
            metadata=dict(metadata or {}),
        )

    def _page(self, model: Any, response: httpx.Response) -> Any:
        try:
            return model.model_validate(self.json_body(response))
        except ValidationError as exc:
            raise malformed(detail=str(exc)) from exc

    @staticmethod
    def _limit(page_size: int) -> str:
        return f"&maxItemsToReturn={page_size}" if page_size >= 1 else ""

    # ── key/value operations ──────────────────────────────────

    def build_get(self, key: str) -> WireRequest:
        return WireRequest("GET", self._object_url(key))

    def parse_get(self, response: httpx.Response) -> ReadResult:
        if response.status_code == 204:
            return ReadResult.missing()
        key_info = self._header_key_info(response)
        return ReadResult(
            value=self.decode_value(response.content),
            key_info=key_info,
            exists=True,
            token=key_info.version,
        )

    def build_set(
        self,
        key: str,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        return WireRequest(
            "POST", self._object_url(key), encoded, self._write_headers(encoded, user_ids, metadata)
        )

    def parse_set(
        self,
        response: httpx.Response,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        return self._body_key_info(response, user_ids, metadata)

    def build_set_if(
        self,
        key: str,
        encoded: str,
        observed: ReadResult,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        # Attributes the transform did not supply are left untouched on the server.
        headers = {"Content-MD5": content_md5(encoded), "Content-Type": "*/*"}
        if metadata is not None:
            headers[ATTRIBUTES_HEADER] = json.dumps(metadata, separators=(",", ":"))
        if user_ids is not None:
            headers[USER_IDS_HEADER] = json.dumps(user_ids, separators=(",", ":"))
        if observed.exists and observed.token is not None:
            headers["If-Match"] = json.dumps(observed.token)
        else:
            headers["If-None-Match"] = "*"
        return WireRequest("POST", self._object_url(key), encoded, headers)

    def parse_set_if(
        self,
        response: httpx.Response,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        # Precondition failures arrive as HTTP 412/409 and never reach here.
        return self._body_key_info(response, user_ids, metadata)

    def build_increment(
        self,
        key: str,
        delta: int,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        url = self._object_url(key, "/increment", f"&incrementBy={delta}")
        return WireRequest("POST", url, None, self._attribute_headers(user_ids, metadata))

    def parse_increment(self, response: httpx.Response) -> tuple[int | float, KeyInfo | None]:
        return to_number(response.content), self._header_key_info(response)

    def build_remove(self, key: str) -> WireRequest:
        return WireRequest("DELETE", self._object_url(key))

    def parse_remove(self, response: httpx.Response) -> tuple[Any, KeyInfo | None]:
        if response.status_code == 204 or not response.content:
            return None, None
        key_info = self._header_key_info(response) if "etag" in response.headers else None
        return self.decode_value(response.content), key_info

    # ── versioned operations ──────────────────────────────────

    def build_get_version(self, key: str, version: str) -> WireRequest:
        return WireRequest("GET", self._object_url(key, extra=f"&version={self.encode(version)}"))

    def build_remove_version(self, key: str, version: str) -> WireRequest:
        return WireRequest(
            "DELETE", self._object_url(key, extra=f"&version={self.encode(version)}")
        )

    # ── listings ──────────────────────────────────────────────

    def build_list_keys(self, prefix: str, page_size: int) -> WireRequest:
        if not self.identity.all_scopes:
            prefix = f"{self.identity.scope}/{prefix}"
        url = (
            f"{self.root}/objects?prefix={self.encode(prefix)}{self._limit(page_size)}"
            f"&datastore={self.name_q}"
        )
        return WireRequest("GET", url)

    def parse_key_page(self, response: httpx.Response) -> PageResult[DataStoreKey]:
        page = self._page(KeyListSchema, response)
        return PageResult([DataStoreKey(k) for k in page.keys], page.last_returned_key or "")

    def build_list_versions(
        self,
        key: str,
        direction: SortDirection,
        min_date: datetime | None,
        max_date: datetime | None,
        page_size: int,
    ) -> WireRequest:
        extra = f"&sortOrder={direction.value}"
        if min_date is not None:
            extra += f"&startTime={self.encode(isoformat(min_date))}"
        if max_date is not None:
            extra += f"&endTime={self.encode(isoformat(max_date))}"
        extra += self._limit(page_size)
        return WireRequest("GET", self._object_url(key, "/versions", extra))

    def parse_version_page(self, response: httpx.Response) -> PageResult[VersionRecord]:
        page = self._page(VersionListSchema, response)
        records = [
            VersionRecord(
                version=v.version,
                created_time=v.created_time,
                is_deleted=bool(v.deleted),
                content_length=v.content_length,
            )
            for v in page.versions
        ]
        return PageResult(records, page.last_returned_key or "")

    def build_list_data_stores(self, prefix: str, page_size: int) -> WireRequest:
        return WireRequest("GET", f"{self.root}?prefix={self.encode(prefix)}{self._limit(page_size)}")

    def parse_store_page(self, response: httpx.Response) -> PageResult[DataStoreInfo]:
        page = self._page(StoreListSchema, response)
        stores = [
            DataStoreInfo(name=s.name, created_time=s.created_time, updated_time=s.updated_time)
            for s in page.datastores
        ]
        return PageResult(stores, page.last_returned_key or "")
