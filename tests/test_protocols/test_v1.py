"""Tests for V1Protocol request building and response parsing."""

import httpx
import pytest

from datastore_bridge import DataStoreConfig, ErrorKind, RequestValidationError, ResponseError
from datastore_bridge.identity import StoreIdentity
from datastore_bridge.protocols import ReadResult, V1Protocol

ROOT = "https://gamepersistence.roblox.com/v1/persistence/"


@pytest.fixture
def protocol(session):
    return V1Protocol(StoreIdentity(name="PlayerData", scope="s1"), DataStoreConfig(), session)


@pytest.fixture
def ordered(session):
    return V1Protocol(StoreIdentity(name="Board", is_ordered=True), DataStoreConfig(), session)


# ── requests ─────────────────────────────────────────────────


def test_get(protocol):
    request = protocol.build_get("user/1")
    assert request.method == "GET"
    assert request.url == f"{ROOT}standard?scope=s1&key=PlayerData&target=user%2F1"


def test_legacy_identity_swaps_key_and_target(session):
    protocol = V1Protocol(StoreIdentity.legacy(), DataStoreConfig(), session)
    assert protocol.build_get("coins").url == f"{ROOT}standard?scope=u&key=coins&target="


def test_set_sends_raw_body(protocol):
    request = protocol.build_set("k", '{"a":1}')
    assert request.method == "POST"
    assert request.body == '{"a":1}'
    assert request.headers["Content-Type"] == "application/octet-stream"


def test_set_if_carries_usn(protocol):
    observed = ReadResult(value=1, exists=True, token="17")
    assert protocol.build_set_if("k", "2", observed).url.endswith("&target=k&usn=17")


def test_set_if_on_missing_key_sends_empty_usn(protocol):
    assert protocol.build_set_if("k", "2", ReadResult.missing()).url.endswith("&usn=")


def test_increment_and_remove(ordered):
    assert ordered.build_increment("a", 3).url == (
        f"{ROOT}sorted/increment?scope=global&key=Board&target=a&by=3"
    )
    assert ordered.build_remove("a").url == f"{ROOT}sorted/remove?scope=global&key=Board&target=a"


def test_sorted_page(ordered):
    request = ordered.build_get_sorted_page(True, 10, None, 50)
    assert request.url == (
        f"{ROOT}sorted/list?scope=global&key=Board&pageSize=10&direction=asc&maxValue=50"
    )


def test_rejects_metadata(protocol):
    with pytest.raises(RequestValidationError) as exc_info:
        protocol.build_increment("k", 1, metadata={"a": 1})
    assert exc_info.value.kind is ErrorKind.API_NOT_SUPPORTED


# ── parsing ──────────────────────────────────────────────────


def test_parse_get(protocol):
    response = httpx.Response(200, content=b'{"coins":10}', headers={"roblox-usn": "4"})
    result = protocol.parse_get(response)
    assert result.value == {"coins": 10}
    assert result.key_info.version == "4"
    assert result.token == "4"


def test_parse_get_no_content(protocol):
    result = protocol.parse_get(httpx.Response(204))
    assert not result.exists
    assert result.value is None


def test_parse_set(protocol):
    assert protocol.parse_set(httpx.Response(200, json={"usn": 5})).version == "5"


def test_parse_set_requires_object(protocol):
    with pytest.raises(ResponseError):
        protocol.parse_set(httpx.Response(200, json=[1]))


def test_parse_increment(ordered):
    value, key_info = ordered.parse_increment(httpx.Response(200, json={"value": 8, "usn": 2}))
    assert value == 8
    assert key_info.version == "2"


def test_parse_remove(protocol):
    previous, key_info = protocol.parse_remove(
        httpx.Response(200, json={"usn": 9, "value": '{"a":1}'})
    )
    assert previous == {"a": 1}
    assert key_info.version == "9"
    assert protocol.parse_remove(httpx.Response(204)) == (None, None)


def test_parse_sorted_page(ordered):
    body = {"entries": [{"target": "a", "value": 3}, {"target": "b", "value": "4"}]}
    page = ordered.parse_sorted_page(httpx.Response(200, json=body))
    assert [(e.key, e.value) for e in page.items] == [("a", 3), ("b", 4)]
    assert page.cursor == ""


def test_parse_sorted_page_malformed(ordered):
    with pytest.raises(ResponseError) as exc_info:
        ordered.parse_sorted_page(httpx.Response(200, json={"rows": []}))
    assert exc_info.value.kind is ErrorKind.MALFORMED_ORDERED_DATASTORE_RESPONSE
