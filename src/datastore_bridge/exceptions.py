"""Error kinds and exceptions for the datastore_bridge package."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Closed set of failure kinds.

    Each member carries a stable numeric ``code`` and a ``%``-style message
    template.  Codes are part of the public contract; messages are not.
    """

    INVALID_STORE_IDENTITY = (100, "DataStore identity is invalid: %s")
    NO_EMPTY_KEYNAME = (101, "Key name can't be empty.")
    KEYNAME_TOO_LARGE = (102, "Key name exceeds the %s character limit.")
    DATA_NOT_ALLOWED_IN_DATASTORE = (103, "%s is not allowed in %s.")
    CANNOT_STORE_DATA_IN_DATASTORE = (104, "Cannot store %s in DataStore.")
    VALUE_TOO_LARGE = (105, "Serialized value converted byte size exceeds max size %s bytes.")
    MAX_VAL_AND_MIN_VAL_NOT_INTEGERS = (106, "MaxValue and MinValue must be integers.")
    PAGE_SIZE_MUST_BE_IN_RANGE = (106, "PageSize must be within predefined range.")
    METADATA_TOO_LARGE = (107, "Metadata attribute size exceeds %s bytes limit.")
    USERID_LIMIT_TOO_LARGE = (108, "UserID size exceeds limit of %s.")
    USERID_ATTRIBUTE_INVALID = (109, "Attribute userId format invalid.")
    METADATA_ATTRIBUTE_INVALID = (110, "Attribute metadata format is invalid.")
    UPDATE_CANCELLED = (111, "Transform function returned nil, update is cancelled.")
    TRANSFORM_YIELDED = (112, "Transform function cannot yield, update is cancelled.")
    INVALID_OBJECT_KEY = (113, "The provided object key is invalid.")
    API_NOT_SUPPORTED = (400, "API not supported: %s")
    NO_API_ACCESS_ALLOWED = (403, "Cannot write to DataStore if API access is not enabled.")
    ORDERED_DATASTORE_DELETED = (404, "OrderedDataStore does not exist.")
    VERSION_CONFLICT = (409, "Key was modified since it was read, the write was rejected.")
    CANNOT_PARSE_RESPONSE = (501, "Can't parse response, data may be corrupted.")
    API_SERVICES_REJECTED = (502, "API Services rejected request with error. %s")
    KEY_NOT_FOUND = (503, "DataStore Request successful, but key not found.")
    MALFORMED_DATASTORE_RESPONSE = (
        504,
        "DataStore Request successful, but the response was not formatted correctly.",
    )
    MALFORMED_ORDERED_DATASTORE_RESPONSE = (
        505,
        "OrderedDataStore Request successful, but the response was not formatted correctly.",
    )

    def __init__(self, code: int, template: str) -> None:
        self.code = code
        self.template = template

    def format(self, *args: Any) -> str:
        """Render ``"<code>: <message>"`` with *args* substituted."""
        text = self.template % args if args else self.template.replace("%s", "").strip()
        return f"{self.code}: {text}"


class DataStoreError(Exception):
    """Base exception for every failure reported by the library."""

    retryable: bool = False

    def __init__(self, kind: ErrorKind, *args: Any, detail: str = "") -> None:
        self.kind = kind
        self.code = kind.code
        self.detail = detail
        msg = kind.format(*args)
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class DataStoreConfigError(DataStoreError):
    """Raised when a store identity or session is unusable."""

    def __init__(self, reason: str) -> None:
        super().__init__(ErrorKind.INVALID_STORE_IDENTITY, reason)


class RequestValidationError(DataStoreError):
    """Raised when a call is rejected before any request is sent."""


class ResponseError(DataStoreError):
    """Raised when the service answered but the payload is unusable."""


class UpstreamError(DataStoreError):
    """Raised when the service rejected the request.

    Attributes:
        status_code:      HTTP status of the rejection (``None`` for transport
                          failures that never produced a response).
        upstream_code:    The service's own error code, when it sent one.
        upstream_message: The service's own error message, when it sent one.
    """

    def __init__(
        self,
        kind: ErrorKind,
        *args: Any,
        status_code: int | None = None,
        upstream_code: int | None = None,
        upstream_message: str = "",
        detail: str = "",
    ) -> None:
        self.status_code = status_code
        self.upstream_code = upstream_code
        self.upstream_message = upstream_message
        super().__init__(kind, *args, detail=detail)


class ConflictError(UpstreamError):
    """Raised when a conditional write lost the race to another writer.

    The caller may re-read and retry; the library never does so itself.
    """

    retryable = True

    def __init__(self, *, status_code: int | None = None, detail: str = "") -> None:
        super().__init__(ErrorKind.VERSION_CONFLICT, status_code=status_code, detail=detail)


class UpdateCancelledError(DataStoreError):
    """Raised when an update transform produced no value to write."""

    def __init__(self, kind: ErrorKind = ErrorKind.UPDATE_CANCELLED) -> None:
        super().__init__(kind)
