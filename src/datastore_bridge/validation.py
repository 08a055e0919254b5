"""Input checks applied before any request is built.

Every check raises :class:`RequestValidationError`; none of them touch the
network.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from datastore_bridge import codec
from datastore_bridge.exceptions import ErrorKind, RequestValidationError
from datastore_bridge.protocols.common import is_number

if TYPE_CHECKING:
    from datastore_bridge.config import DataStoreConfig
    from datastore_bridge.identity import StoreIdentity

_LOG_HEAD = 200


def check_key(key: str, identity: StoreIdentity, config: DataStoreConfig) -> None:
    """Reject empty, oversized or (optionally) unscoped keys."""
    if not isinstance(key, str) or len(key) == 0:
        raise RequestValidationError(ErrorKind.NO_EMPTY_KEYNAME)
    if len(key) > config.key_length_limit:
        raise RequestValidationError(ErrorKind.KEYNAME_TOO_LARGE, config.key_length_limit)
    if identity.all_scopes and config.check_object_key_for_scope and "/" not in key:
        raise RequestValidationError(ErrorKind.INVALID_OBJECT_KEY)


def check_user_ids(user_ids: Any, config: DataStoreConfig) -> list[int] | None:
    """Shape first, then count."""
    if user_ids is None:
        return None
    if not isinstance(user_ids, (list, tuple)) or not all(
        isinstance(uid, int) and not isinstance(uid, bool) for uid in user_ids
    ):
        raise RequestValidationError(ErrorKind.USERID_ATTRIBUTE_INVALID)
    if len(user_ids) > config.max_user_ids:
        raise RequestValidationError(ErrorKind.USERID_LIMIT_TOO_LARGE, config.max_user_ids)
    return list(user_ids)


def check_metadata(metadata: Any, config: DataStoreConfig) -> dict[str, Any] | None:
    """Shape first, then serialized size."""
    if metadata is None:
        return None
    if not isinstance(metadata, dict) or not all(isinstance(k, str) for k in metadata):
        raise RequestValidationError(ErrorKind.METADATA_ATTRIBUTE_INVALID)
    encoded = codec.serialize(metadata)
    if not encoded.ok:
        raise RequestValidationError(ErrorKind.METADATA_ATTRIBUTE_INVALID, detail=encoded.error)
    if codec.encoded_size(encoded.value) > config.max_metadata_size:
        raise RequestValidationError(ErrorKind.METADATA_TOO_LARGE, config.max_metadata_size)
    return metadata


def check_value_allowed(value: Any, identity: StoreIdentity) -> None:
    if value is None:
        raise RequestValidationError(ErrorKind.CANNOT_STORE_DATA_IN_DATASTORE, "None")
    if identity.is_ordered and not is_number(value):
        raise RequestValidationError(
            ErrorKind.DATA_NOT_ALLOWED_IN_DATASTORE, type(value).__name__, identity.display_kind
        )


def encode_value(value: Any, identity: StoreIdentity, config: DataStoreConfig) -> str:
    """Check *value* for the store kind, serialize it, and enforce the size limit."""
    check_value_allowed(value, identity)
    encoded = codec.serialize(value)
    if not encoded.ok:
        raise RequestValidationError(
            ErrorKind.DATA_NOT_ALLOWED_IN_DATASTORE,
            type(value).__name__,
            identity.display_kind,
            detail=encoded.error,
        )
    if codec.encoded_size(encoded.value) > config.max_value_size:
        raise RequestValidationError(ErrorKind.VALUE_TOO_LARGE, config.max_value_size)
    return encoded.value


def check_delta(delta: Any) -> int:
    if not isinstance(delta, int) or isinstance(delta, bool):
        raise RequestValidationError(
            ErrorKind.DATA_NOT_ALLOWED_IN_DATASTORE, type(delta).__name__, "IncrementAsync"
        )
    return delta


def check_bound(bound: Any) -> int | None:
    """Sorted range bounds must be whole numbers."""
    if bound is None:
        return None
    if isinstance(bound, bool) or not is_number(bound):
        raise RequestValidationError(ErrorKind.MAX_VAL_AND_MIN_VAL_NOT_INTEGERS)
    if isinstance(bound, float):
        if not bound.is_integer():
            raise RequestValidationError(ErrorKind.MAX_VAL_AND_MIN_VAL_NOT_INTEGERS)
        return int(bound)
    return bound


def check_page_size(page_size: Any, config: DataStoreConfig) -> int:
    if (
        not isinstance(page_size, int)
        or isinstance(page_size, bool)
        or not 0 < page_size <= config.max_page_size
    ):
        raise RequestValidationError(ErrorKind.PAGE_SIZE_MUST_BE_IN_RANGE)
    return page_size


def log_long_value(logger: logging.Logger, encoded: str) -> None:
    """Debug-log a serialized value, eliding the middle of long ones."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if len(encoded) <= _LOG_HEAD * 2:
        logger.debug("Value: %s", encoded)
    else:
        logger.debug(
            "Value (%d chars): %s ... %s", len(encoded), encoded[:_LOG_HEAD], encoded[-_LOG_HEAD:]
        )
