"""LegacyProtocol — the original query-string persistence endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError

from datastore_bridge import codec
from datastore_bridge.config import ProtocolGeneration
from datastore_bridge.exceptions import ConflictError
from datastore_bridge.protocols.base import (
    FORM_CONTENT_TYPE,
    PageResult,
    ReadResult,
    WireProtocol,
    WireRequest,
)
from datastore_bridge.protocols.common import sorted_entries, to_number
from datastore_bridge.schema import LegacyDataSchema, LegacySortedSchema
from datastore_bridge.taxonomy import malformed

if TYPE_CHECKING:
    import httpx

    from datastore_bridge.models import KeyInfo, SortedEntry


class LegacyProtocol(WireProtocol):
    """``POST {base}/persistence/{op}`` with form-encoded bodies.

    The unnamed legacy store sends the object key in ``key`` and leaves
    ``target`` empty; named stores send the store name in ``key`` and the
    object key in ``target``.  No operation yields a ``KeyInfo``.
    """

    generation: ClassVar[ProtocolGeneration] = ProtocolGeneration.LEGACY

    @property
    def root(self) -> str:
        return f"{self.config.service_root()}/persistence/"

    def _address(self, key: str) -> str:
        scope, target = self.scope_and_target(key)
        type_name = self.identity.type_name
        if self.identity.is_legacy:
            return (
                f"key={self.encode(target)}&type={type_name}"
                f"&scope={self.encode(scope)}&target="
            )
        return (
            f"key={self.name_q}&type={type_name}"
            f"&scope={self.encode(scope)}&target={self.encode(target)}"
        )

    def _url(self, op: str, key: str, extra: str = "") -> str:
        return f"{self.root}{op}?placeId={self.session.place_id}&{self._address(key)}{extra}"

    def _reject_attributes(
        self, user_ids: list[int] | None, metadata: dict[str, Any] | None
    ) -> None:
        if user_ids:
            raise self.unsupported("UserIds")
        if metadata:
            raise self.unsupported("SetOptions metadata")

    def _data(self, response: httpx.Response) -> Any:
        try:
            return LegacyDataSchema.model_validate(self.json_body(response)).data
        except ValidationError as exc:
            raise malformed(detail=str(exc)) from exc

    # ── key/value operations ──────────────────────────────────

    def build_get(self, key: str) -> WireRequest:
        scope, target = self.scope_and_target(key)
        if self.identity.is_legacy:
            qkey, qtarget = target, ""
        else:
            qkey, qtarget = self.identity.name, target
        body = (
            f"qkeys[0].scope={self.encode(scope)}"
            f"&qkeys[0].target={self.encode(qtarget)}"
            f"&qkeys[0].key={self.encode(qkey)}"
        )
        url = (
            f"{self.root}getV2?placeId={self.session.place_id}"
            f"&type={self.identity.type_name}&scope={self.encode(scope)}"
        )
        return WireRequest("POST", url, body, {"Content-Type": FORM_CONTENT_TYPE})

    def parse_get(self, response: httpx.Response) -> ReadResult:
        data = self._data(response)
        if not isinstance(data, list):
            raise malformed(detail="data is not a list")
        if not data:
            return ReadResult.missing()
        entry = data[0]
        if not isinstance(entry, dict) or "Value" not in entry:
            raise malformed(detail="entry has no Value")
        wire = entry["Value"]
        raw = wire if isinstance(wire, str) else codec.serialize(wire).value
        return ReadResult(value=self.decode_value(wire), exists=True, raw=raw or "")

    def build_set(
        self,
        key: str,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        self._reject_attributes(user_ids, metadata)
        url = self._url("set", key, f"&valueLength={len(encoded)}")
        body = f"value={self.encode(encoded)}"
        return WireRequest("POST", url, body, {"Content-Type": FORM_CONTENT_TYPE})

    def parse_set(
        self,
        response: httpx.Response,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        if self._data(response) is None:
            raise malformed(detail="missing data")
        return None

    def build_set_if(
        self,
        key: str,
        encoded: str,
        observed: ReadResult,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        self._reject_attributes(user_ids, metadata)
        expected = observed.raw if observed.exists else ""
        url = self._url(
            "set",
            key,
            f"&valueLength={len(encoded)}&expectedValueLength={len(expected)}",
        )
        body = f"value={self.encode(encoded)}&expectedValue={self.encode(expected)}"
        return WireRequest("POST", url, body, {"Content-Type": FORM_CONTENT_TYPE})

    def parse_set_if(
        self,
        response: httpx.Response,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        # The service answers with the value it now holds; a different value
        # means the expected value no longer matched.
        stored = self._data(response)
        if stored is None:
            raise malformed(detail="missing data")
        if codec.deserialize(stored).value != codec.deserialize(encoded).value:
            raise ConflictError(detail="stored value differs from the value written")
        return None

    def build_increment(
        self,
        key: str,
        delta: int,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        self._reject_attributes(user_ids, metadata)
        return WireRequest("POST", self._url("increment", key, f"&value={delta}"))

    def parse_increment(self, response: httpx.Response) -> tuple[int | float, KeyInfo | None]:
        return to_number(self._data(response)), None

    def build_remove(self, key: str) -> WireRequest:
        return WireRequest("POST", self._url("remove", key))

    def parse_remove(self, response: httpx.Response) -> tuple[Any, KeyInfo | None]:
        data = self._data(response)
        return (None if data is None else self.decode_value(data)), None

    # ── listings ──────────────────────────────────────────────

    def build_get_sorted_page(
        self,
        ascending: bool,
        page_size: int,
        min_value: int | None,
        max_value: int | None,
    ) -> WireRequest:
        url = (
            f"{self.root}getSortedValues?placeId={self.session.place_id}"
            f"&type={self.identity.type_name}&scope={self.encode(self.identity.scope)}"
            f"&key={self.name_q}&pageSize={page_size}&ascending={'True' if ascending else 'False'}"
        )
        if min_value is not None:
            url += f"&inclusiveMinValue={min_value}"
        if max_value is not None:
            url += f"&inclusiveMaxValue={max_value}"
        return WireRequest("GET", url)

    def parse_sorted_page(self, response: httpx.Response) -> PageResult[SortedEntry]:
        try:
            page = LegacySortedSchema.model_validate(self.json_body(response))
        except ValidationError as exc:
            raise malformed(ordered=True, detail=str(exc)) from exc
        return PageResult(sorted_entries(page.data.entries), page.data.exclusive_start_key or "")
