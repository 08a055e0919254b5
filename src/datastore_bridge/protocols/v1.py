"""V1Protocol — per-type endpoints with update sequence numbers (USNs)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError

from datastore_bridge.config import ProtocolGeneration
from datastore_bridge.models import KeyInfo
from datastore_bridge.protocols.base import PageResult, ReadResult, WireProtocol, WireRequest
from datastore_bridge.protocols.common import sorted_entries, to_number
from datastore_bridge.schema import IncrementSchema, SortedListSchema
from datastore_bridge.taxonomy import malformed

if TYPE_CHECKING:
    import httpx

    from datastore_bridge.models import SortedEntry

USN_HEADER = "roblox-usn"
OCTET_STREAM = "application/octet-stream"


def _key_info(usn: Any) -> KeyInfo | None:
    return KeyInfo(version=str(usn)) if usn not in (None, "") else None


class V1Protocol(WireProtocol):
    """``{base}/v1/persistence/{standard|sorted}[/increment|/remove]``.

    Writes carry the serialized value as the raw body.  A conditional write
    adds ``&usn=<token>``; an empty token means "only if the key does not
    exist".  ``KeyInfo`` carries the USN as its version and nothing else.
    """

    generation: ClassVar[ProtocolGeneration] = ProtocolGeneration.V1

    @property
    def root(self) -> str:
        return f"{self.config.service_root()}/v1/persistence/"

    def _query(self, key: str) -> str:
        scope, target = self.scope_and_target(key)
        if self.identity.is_legacy:
            return f"scope={self.encode(scope)}&key={self.encode(target)}&target="
        return f"scope={self.encode(scope)}&key={self.name_q}&target={self.encode(target)}"

    def _url(self, key: str, suffix: str = "", extra: str = "") -> str:
        return f"{self.root}{self.identity.type_name}{suffix}?{self._query(key)}{extra}"

    def _reject_attributes(
        self, user_ids: list[int] | None, metadata: dict[str, Any] | None
    ) -> None:
        if user_ids:
            raise self.unsupported("UserIds")
        if metadata:
            raise self.unsupported("SetOptions metadata")

    def _usn_from_body(self, response: httpx.Response) -> KeyInfo | None:
        body = self.json_body(response)
        if not isinstance(body, dict):
            raise malformed(detail="expected an object with usn")
        return _key_info(body.get("usn"))

    # ── key/value operations ──────────────────────────────────

    def build_get(self, key: str) -> WireRequest:
        return WireRequest("GET", self._url(key))

    def parse_get(self, response: httpx.Response) -> ReadResult:
        if response.status_code == 204:
            return ReadResult.missing()
        usn = response.headers.get(USN_HEADER)
        return ReadResult(
            value=self.decode_value(response.content),
            key_info=_key_info(usn),
            exists=True,
            token=usn,
        )

    def build_set(
        self,
        key: str,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        self._reject_attributes(user_ids, metadata)
        return WireRequest("POST", self._url(key), encoded, {"Content-Type": OCTET_STREAM})

    def parse_set(
        self,
        response: httpx.Response,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        return self._usn_from_body(response)

    def build_set_if(
        self,
        key: str,
        encoded: str,
        observed: ReadResult,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        self._reject_attributes(user_ids, metadata)
        usn = observed.token if observed.exists and observed.token else ""
        url = self._url(key, extra=f"&usn={self.encode(usn)}")
        return WireRequest("POST", url, encoded, {"Content-Type": OCTET_STREAM})

    def parse_set_if(
        self,
        response: httpx.Response,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        # A lost precondition comes back as HTTP 409, raised by the transport.
        return self._usn_from_body(response)

    def build_increment(
        self,
        key: str,
        delta: int,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        self._reject_attributes(user_ids, metadata)
        return WireRequest("POST", self._url(key, "/increment", f"&by={delta}"))

    def parse_increment(self, response: httpx.Response) -> tuple[int | float, KeyInfo | None]:
        try:
            body = IncrementSchema.model_validate(self.json_body(response))
        except ValidationError as exc:
            raise malformed(detail=str(exc)) from exc
        return to_number(body.value), _key_info(body.usn)

    def build_remove(self, key: str) -> WireRequest:
        return WireRequest("POST", self._url(key, "/remove"))

    def parse_remove(self, response: httpx.Response) -> tuple[Any, KeyInfo | None]:
        if response.status_code == 204 or not response.content:
            return None, None
        body = self.json_body(response)
        if not isinstance(body, dict):
            raise malformed(detail="expected an object with usn")
        value = body.get("value")
        return (None if value is None else self.decode_value(value)), _key_info(body.get("usn"))

    # ── listings ──────────────────────────────────────────────

    def build_get_sorted_page(
        self,
        ascending: bool,
        page_size: int,
        min_value: int | None,
        max_value: int | None,
    ) -> WireRequest:
        url = (
            f"{self.root}sorted/list?scope={self.encode(self.identity.scope)}"
            f"&key={self.name_q}&pageSize={page_size}"
            f"&direction={'asc' if ascending else 'desc'}"
        )
        if min_value is not None:
            url += f"&minValue={min_value}"
        if max_value is not None:
            url += f"&maxValue={max_value}"
        return WireRequest("GET", url)

    def parse_sorted_page(self, response: httpx.Response) -> PageResult[SortedEntry]:
        try:
            page = SortedListSchema.model_validate(self.json_body(response))
        except ValidationError as exc:
            raise malformed(ordered=True, detail=str(exc)) from exc
        return PageResult(sorted_entries(page.entries), page.last_evaluated_key or "")
