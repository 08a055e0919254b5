"""Tests for LegacyProtocol request building and response parsing."""

from urllib.parse import parse_qs

import httpx
import pytest

from datastore_bridge import (
    ConflictError,
    DataStoreConfig,
    ErrorKind,
    RequestValidationError,
    ResponseError,
)
from datastore_bridge.identity import StoreIdentity
from datastore_bridge.protocols import LegacyProtocol, ReadResult

ROOT = "https://gamepersistence.roblox.com/persistence/"


@pytest.fixture
def named(session):
    return LegacyProtocol(StoreIdentity(name="Player Data"), DataStoreConfig(), session)


@pytest.fixture
def unnamed(session):
    return LegacyProtocol(StoreIdentity.legacy(), DataStoreConfig(), session)


def _form(request):
    return {k: v[0] for k, v in parse_qs(request.body, keep_blank_values=True).items()}


# ── addressing ───────────────────────────────────────────────


def test_get_named_store(named):
    request = named.build_get("user/1")
    assert request.method == "POST"
    assert request.url == f"{ROOT}getV2?placeId=1818&type=standard&scope=global"
    assert _form(request) == {
        "qkeys[0].scope": "global",
        "qkeys[0].target": "user/1",
        "qkeys[0].key": "Player Data",
    }
    assert "%2F" in request.body


def test_get_unnamed_store_swaps_key_and_target(unnamed):
    request = unnamed.build_get("coins")
    assert request.url.endswith("type=standard&scope=u")
    assert _form(request)["qkeys[0].key"] == "coins"
    assert _form(request)["qkeys[0].target"] == ""


def test_set_url(named):
    request = named.build_set("user/1", '{"a":1}')
    assert request.url == (
        f"{ROOT}set?placeId=1818&key=Player%20Data&type=standard&scope=global"
        "&target=user%2F1&valueLength=7"
    )
    assert _form(request) == {"value": '{"a":1}'}


def test_unencoded_names(session):
    protocol = LegacyProtocol(
        StoreIdentity(name="Player Data"), DataStoreConfig(url_encode=False), session
    )
    assert "key=Player Data" in protocol.build_remove("k").url


def test_all_scopes_key_carries_scope(session):
    identity = StoreIdentity(name="S", scope="", all_scopes=True)
    protocol = LegacyProtocol(identity, DataStoreConfig(), session)
    assert "&scope=house&target=door" in protocol.build_increment("house/door", 1).url


def test_set_if_carries_expected_value(named):
    observed = ReadResult(value=1, exists=True, raw="1")
    request = named.build_set_if("k", "2", observed)
    assert request.url.endswith("&valueLength=1&expectedValueLength=1")
    assert _form(request) == {"value": "2", "expectedValue": "1"}


def test_set_if_on_missing_key_expects_empty(named):
    request = named.build_set_if("k", "2", ReadResult.missing())
    assert request.url.endswith("&expectedValueLength=0")
    assert _form(request)["expectedValue"] == ""


def test_increment_url(named):
    assert named.build_increment("k", -4).url.endswith("&target=k&value=-4")


def test_rejects_attributes(named):
    with pytest.raises(RequestValidationError) as exc_info:
        named.build_set("k", "1", user_ids=[1])
    assert exc_info.value.kind is ErrorKind.API_NOT_SUPPORTED


def test_no_versioned_operations(named):
    with pytest.raises(RequestValidationError):
        named.build_get_version("k", "v")


def test_sorted_page_url(session):
    protocol = LegacyProtocol(
        StoreIdentity(name="Board", is_ordered=True), DataStoreConfig(), session
    )
    request = protocol.build_get_sorted_page(False, 10, 1, 9)
    assert request.method == "GET"
    assert request.url == (
        f"{ROOT}getSortedValues?placeId=1818&type=sorted&scope=global&key=Board"
        "&pageSize=10&ascending=False&inclusiveMinValue=1&inclusiveMaxValue=9"
    )


# ── parsing ──────────────────────────────────────────────────


def test_parse_get(named):
    response = httpx.Response(200, json={"data": [{"Key": "k", "Value": '{"a":1}'}]})
    result = named.parse_get(response)
    assert result.exists
    assert result.value == {"a": 1}
    assert result.raw == '{"a":1}'
    assert result.key_info is None


def test_parse_get_missing(named):
    assert not named.parse_get(httpx.Response(200, json={"data": []})).exists


def test_parse_get_malformed(named):
    with pytest.raises(ResponseError) as exc_info:
        named.parse_get(httpx.Response(200, json={"nope": 1}))
    assert exc_info.value.kind is ErrorKind.MALFORMED_DATASTORE_RESPONSE


def test_parse_get_raw_fallback(named):
    result = named.parse_get(httpx.Response(200, json={"data": [{"Value": "not json"}]}))
    assert result.value == "not json"


def test_parse_get_strict_decoding(session):
    protocol = LegacyProtocol(
        StoreIdentity(name="S"), DataStoreConfig(return_raw_on_deserialize_failure=False), session
    )
    with pytest.raises(ResponseError) as exc_info:
        protocol.parse_get(httpx.Response(200, json={"data": [{"Value": "not json"}]}))
    assert exc_info.value.kind is ErrorKind.CANNOT_PARSE_RESPONSE


def test_parse_set_if_detects_mismatch(named):
    assert named.parse_set_if(httpx.Response(200, json={"data": "2"}), "2") is None
    with pytest.raises(ConflictError):
        named.parse_set_if(httpx.Response(200, json={"data": "3"}), "2")


def test_parse_increment(named):
    assert named.parse_increment(httpx.Response(200, json={"data": 12})) == (12, None)
    assert named.parse_increment(httpx.Response(200, json={"data": "12"})) == (12, None)


def test_parse_sorted_page(session):
    protocol = LegacyProtocol(StoreIdentity(name="B", is_ordered=True), DataStoreConfig(), session)
    body = {"data": {"Entries": [{"Target": "a", "Value": "1"}], "ExclusiveStartKey": "c1"}}
    page = protocol.parse_sorted_page(httpx.Response(200, json=body))
    assert [(e.key, e.value) for e in page.items] == [("a", 1)]
    assert page.cursor == "c1"


def test_parse_sorted_page_non_numeric(session):
    protocol = LegacyProtocol(StoreIdentity(name="B", is_ordered=True), DataStoreConfig(), session)
    body = {"data": {"Entries": [{"Target": "a", "Value": '"x"'}]}}
    with pytest.raises(ResponseError) as exc_info:
        protocol.parse_sorted_page(httpx.Response(200, json=body))
    assert exc_info.value.kind is ErrorKind.MALFORMED_ORDERED_DATASTORE_RESPONSE
