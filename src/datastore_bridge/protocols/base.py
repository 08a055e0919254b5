"""WireProtocol ABC — the contract every protocol generation implements."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar
from urllib.parse import quote

from datastore_bridge import codec
from datastore_bridge.exceptions import ErrorKind, RequestValidationError
from datastore_bridge.taxonomy import unparseable

if TYPE_CHECKING:
    import httpx

    from datastore_bridge.config import DataStoreConfig, ProtocolGeneration
    from datastore_bridge.identity import StoreIdentity
    from datastore_bridge.models import (
        DataStoreInfo,
        DataStoreKey,
        KeyInfo,
        SortDirection,
        SortedEntry,
        VersionRecord,
    )
    from datastore_bridge.session import SessionContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class WireRequest:
    """One fully-built HTTP request.

    Attributes:
        method:  HTTP verb.
        url:     Absolute URL including the query string.
        body:    Request body, if any.
        headers: Protocol-specific headers.  Session headers are added by the
                 transport.
    """

    method: str
    url: str
    body: str | bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReadResult:
    """A key as read, plus whatever a conditional write needs to target it.

    Attributes:
        value:    Decoded value, ``None`` when the key does not exist.
        key_info: Version information (v1/v2 only).
        exists:   Whether the key currently holds a value.
        token:    v2 version or v1 USN observed by the read.
        raw:      Undecoded wire value (legacy), echoed back as ``expectedValue``.
    """

    value: Any = None
    key_info: KeyInfo | None = None
    exists: bool = False
    token: str | None = None
    raw: str = ""

    @staticmethod
    def missing() -> ReadResult:
        return ReadResult()


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """Items of one listing page and the cursor of the next (``""`` when exhausted)."""

    items: list[T]
    cursor: str = ""


class WireProtocol(ABC):
    """Base class for every protocol generation.

    A protocol turns store operations into :class:`WireRequest` objects
    (``build_*``) and turns successful ``httpx.Response`` objects back into
    values (``parse_*``).  Operations a generation cannot express keep the
    default implementation, which raises ``API_NOT_SUPPORTED`` before any
    request exists.

    Class Variables:
        generation: The :class:`ProtocolGeneration` this class implements.
    """

    generation: ClassVar[ProtocolGeneration]

    def __init__(
        self,
        identity: StoreIdentity,
        config: DataStoreConfig,
        session: SessionContext,
    ) -> None:
        self.identity = identity
        self.config = config
        self.session = session

    # ── helpers ───────────────────────────────────────────────

    def encode(self, component: str) -> str:
        """URL-encode one query component (unless ``url_encode`` is off)."""
        return quote(component, safe="") if self.config.url_encode else component

    @property
    def name_q(self) -> str:
        return self.encode(self.identity.name)

    def scope_and_target(self, key: str) -> tuple[str, str]:
        """Split *key* into the scope and target fields of scope-addressed protocols."""
        if self.identity.all_scopes and "/" in key:
            scope, _, target = key.partition("/")
            return scope, target
        return self.identity.scope, key

    def unsupported(self, operation: str) -> RequestValidationError:
        return RequestValidationError(
            ErrorKind.API_NOT_SUPPORTED, f"{operation} on {self.generation.value} protocol"
        )

    def decode_value(self, wire: Any) -> Any:
        """Decode a stored value, surfacing the raw payload when configured to."""
        result = codec.deserialize(wire)
        if result.ok:
            return result.value
        if self.config.return_raw_on_deserialize_failure:
            logger.warning("Returning raw payload, value failed to decode: %s", result.error)
            return result.raw
        raise unparseable(result.error)

    def json_body(self, response: httpx.Response) -> Any:
        """Parse a response body that must be JSON."""
        result = codec.deserialize(response.content)
        if not result.ok:
            raise unparseable(result.error)
        return result.value

    # ── key/value operations ──────────────────────────────────

    @abstractmethod
    def build_get(self, key: str) -> WireRequest: ...

    @abstractmethod
    def parse_get(self, response: httpx.Response) -> ReadResult: ...

    @abstractmethod
    def build_set(
        self,
        key: str,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest: ...

    @abstractmethod
    def parse_set(
        self,
        response: httpx.Response,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None: ...

    @abstractmethod
    def build_set_if(
        self,
        key: str,
        encoded: str,
        observed: ReadResult,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest:
        """Build a write that only applies if the key still matches *observed*."""

    @abstractmethod
    def parse_set_if(
        self,
        response: httpx.Response,
        encoded: str,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> KeyInfo | None:
        """Interpret a conditional write.  Raises ``ConflictError`` if it lost."""

    @abstractmethod
    def build_increment(
        self,
        key: str,
        delta: int,
        user_ids: list[int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WireRequest: ...

    @abstractmethod
    def parse_increment(self, response: httpx.Response) -> tuple[int | float, KeyInfo | None]: ...

    @abstractmethod
    def build_remove(self, key: str) -> WireRequest: ...

    @abstractmethod
    def parse_remove(self, response: httpx.Response) -> tuple[Any, KeyInfo | None]: ...

    # ── versioned operations ──────────────────────────────────

    def build_get_version(self, key: str, version: str) -> WireRequest:
        raise self.unsupported("GetVersionAsync")

    def parse_get_version(self, response: httpx.Response) -> ReadResult:
        return self.parse_get(response)

    def build_remove_version(self, key: str, version: str) -> WireRequest:
        raise self.unsupported("RemoveVersionAsync")

    # ── listings ──────────────────────────────────────────────

    def build_list_keys(self, prefix: str, page_size: int) -> WireRequest:
        raise self.unsupported("ListKeysAsync")

    def parse_key_page(self, response: httpx.Response) -> PageResult[DataStoreKey]:
        raise self.unsupported("ListKeysAsync")

    def build_list_versions(
        self,
        key: str,
        direction: SortDirection,
        min_date: datetime | None,
        max_date: datetime | None,
        page_size: int,
    ) -> WireRequest:
        raise self.unsupported("ListVersionsAsync")

    def parse_version_page(self, response: httpx.Response) -> PageResult[VersionRecord]:
        raise self.unsupported("ListVersionsAsync")

    def build_get_sorted_page(
        self,
        ascending: bool,
        page_size: int,
        min_value: int | None,
        max_value: int | None,
    ) -> WireRequest:
        raise self.unsupported("GetSortedAsync")

    def parse_sorted_page(self, response: httpx.Response) -> PageResult[SortedEntry]:
        raise self.unsupported("GetSortedAsync")

    def build_list_data_stores(self, prefix: str, page_size: int) -> WireRequest:
        raise self.unsupported("ListDataStoresAsync")

    def parse_store_page(self, response: httpx.Response) -> PageResult[DataStoreInfo]:
        raise self.unsupported("ListDataStoresAsync")
