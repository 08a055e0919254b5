"""Tests for the pre-request input checks."""

import logging

import pytest

from datastore_bridge import DataStoreConfig, ErrorKind, RequestValidationError
from datastore_bridge.identity import StoreIdentity
from datastore_bridge.validation import (
    check_bound,
    check_delta,
    check_key,
    check_metadata,
    check_page_size,
    check_user_ids,
    encode_value,
    log_long_value,
)

STANDARD = StoreIdentity(name="PlayerData")
ORDERED = StoreIdentity(name="Leaderboard", is_ordered=True)
ALL_SCOPES = StoreIdentity(name="PlayerData", scope="", all_scopes=True)


@pytest.fixture
def config():
    return DataStoreConfig(max_value_size=32, max_user_ids=2, max_metadata_size=20)


def _kind(exc_info):
    return exc_info.value.kind


# ── keys ─────────────────────────────────────────────────────


def test_empty_key(config):
    with pytest.raises(RequestValidationError) as exc_info:
        check_key("", STANDARD, config)
    assert _kind(exc_info) is ErrorKind.NO_EMPTY_KEYNAME


def test_key_at_limit_is_accepted(config):
    check_key("k" * 50, STANDARD, config)


def test_key_over_limit(config):
    with pytest.raises(RequestValidationError) as exc_info:
        check_key("k" * 51, STANDARD, config)
    assert _kind(exc_info) is ErrorKind.KEYNAME_TOO_LARGE
    assert "50" in str(exc_info.value)


def test_all_scopes_key_requires_scope_when_checked():
    config = DataStoreConfig(check_object_key_for_scope=True)
    check_key("global/user", ALL_SCOPES, config)
    with pytest.raises(RequestValidationError) as exc_info:
        check_key("user", ALL_SCOPES, config)
    assert _kind(exc_info) is ErrorKind.INVALID_OBJECT_KEY
    assert exc_info.value.code == 113


def test_all_scopes_key_unchecked_by_default(config):
    check_key("user", ALL_SCOPES, config)


# ── user ids and metadata ────────────────────────────────────


def test_user_ids_shape_before_count(config):
    with pytest.raises(RequestValidationError) as exc_info:
        check_user_ids(["a", "b", "c"], config)
    assert _kind(exc_info) is ErrorKind.USERID_ATTRIBUTE_INVALID


def test_user_ids_count(config):
    assert check_user_ids((1, 2), config) == [1, 2]
    with pytest.raises(RequestValidationError) as exc_info:
        check_user_ids([1, 2, 3], config)
    assert _kind(exc_info) is ErrorKind.USERID_LIMIT_TOO_LARGE


def test_user_ids_reject_bools(config):
    with pytest.raises(RequestValidationError):
        check_user_ids([True], config)


def test_user_ids_none(config):
    assert check_user_ids(None, config) is None


def test_metadata_shape(config):
    with pytest.raises(RequestValidationError) as exc_info:
        check_metadata(["not", "a", "map"], config)
    assert _kind(exc_info) is ErrorKind.METADATA_ATTRIBUTE_INVALID


def test_metadata_size(config):
    assert check_metadata({"a": 1}, config) == {"a": 1}
    with pytest.raises(RequestValidationError) as exc_info:
        check_metadata({"a": "x" * 40}, config)
    assert _kind(exc_info) is ErrorKind.METADATA_TOO_LARGE


# ── values ───────────────────────────────────────────────────


def test_none_value_rejected(config):
    with pytest.raises(RequestValidationError) as exc_info:
        encode_value(None, STANDARD, config)
    assert _kind(exc_info) is ErrorKind.CANNOT_STORE_DATA_IN_DATASTORE


def test_ordered_requires_numbers(config):
    assert encode_value(5, ORDERED, config) == "5"
    with pytest.raises(RequestValidationError) as exc_info:
        encode_value("5", ORDERED, config)
    assert _kind(exc_info) is ErrorKind.DATA_NOT_ALLOWED_IN_DATASTORE
    assert "OrderedDataStore" in str(exc_info.value)


def test_unserializable_value(config):
    with pytest.raises(RequestValidationError) as exc_info:
        encode_value({1, 2}, STANDARD, config)
    assert _kind(exc_info) is ErrorKind.DATA_NOT_ALLOWED_IN_DATASTORE


def test_value_size_limit_is_inclusive(config):
    # 30 characters plus the two quotes is exactly the 32 byte limit
    assert encode_value("x" * 30, STANDARD, config) == '"' + "x" * 30 + '"'
    with pytest.raises(RequestValidationError) as exc_info:
        encode_value("x" * 31, STANDARD, config)
    assert _kind(exc_info) is ErrorKind.VALUE_TOO_LARGE


# ── numbers ──────────────────────────────────────────────────


def test_delta_must_be_int():
    assert check_delta(-3) == -3
    for bad in (1.5, "1", True):
        with pytest.raises(RequestValidationError):
            check_delta(bad)


def test_bounds():
    assert check_bound(None) is None
    assert check_bound(4) == 4
    assert check_bound(4.0) == 4
    with pytest.raises(RequestValidationError) as exc_info:
        check_bound(4.5)
    assert _kind(exc_info) is ErrorKind.MAX_VAL_AND_MIN_VAL_NOT_INTEGERS


def test_page_size(config):
    assert check_page_size(1, config) == 1
    assert check_page_size(100, config) == 100
    for bad in (0, 101, -1, 2.0):
        with pytest.raises(RequestValidationError) as exc_info:
            check_page_size(bad, config)
        assert _kind(exc_info) is ErrorKind.PAGE_SIZE_MUST_BE_IN_RANGE


# ── logging ──────────────────────────────────────────────────


def test_long_values_are_elided(caplog):
    logger = logging.getLogger("datastore_bridge.test")
    with caplog.at_level(logging.DEBUG, logger="datastore_bridge.test"):
        log_long_value(logger, "a" * 200 + "m" * 100 + "z" * 200)
    message = caplog.records[-1].getMessage()
    assert "(500 chars)" in message
    assert "m" not in message.replace("chars", "")
