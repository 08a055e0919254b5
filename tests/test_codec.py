"""Tests for the value codec."""

import math

import pytest

from datastore_bridge import codec


def test_serialize_is_compact():
    result = codec.serialize({"coins": 10, "items": [1, 2]})
    assert result.ok
    assert result.value == '{"coins":10,"items":[1,2]}'


def test_serialize_keeps_unicode():
    assert codec.serialize("héllo").value == '"héllo"'


def test_serialize_reports_cycles():
    cyclic: list = []
    cyclic.append(cyclic)
    result = codec.serialize(cyclic)
    assert not result.ok
    assert result.value is None
    assert result.error


def test_serialize_rejects_non_finite_floats():
    assert not codec.serialize(math.inf).ok
    assert not codec.serialize(math.nan).ok


def test_serialize_rejects_unknown_types():
    assert not codec.serialize(object()).ok


def test_deserialize_bytes_and_str():
    assert codec.deserialize(b'{"a":1}').value == {"a": 1}
    assert codec.deserialize("[1,2]").value == [1, 2]


def test_deserialize_empty_string():
    result = codec.deserialize("")
    assert result.ok
    assert result.value == ""


def test_deserialize_passes_parsed_values_through():
    assert codec.deserialize(42).value == 42
    assert codec.deserialize({"a": 1}).value == {"a": 1}


def test_deserialize_failure_keeps_raw():
    result = codec.deserialize("not json")
    assert not result.ok
    assert result.raw == "not json"


def test_deserialize_invalid_utf8():
    result = codec.deserialize(b"\xff\xfe")
    assert not result.ok
    assert result.raw == b"\xff\xfe"


def test_encoded_size_counts_bytes():
    assert codec.encoded_size('"é"') == 4


@pytest.mark.parametrize(
    "value",
    [
        {"profile": {"name": "ana", "tags": ["a", "b"]}, "scores": [[1, 2], [3]]},
        [{"k": None}, [], {}],
        "héllo ✓ 日本",
        "",
        0,
        False,
        None,
        2**62,
        -(10**18),
        1.5,
    ],
)
def test_round_trip(value):
    encoded = codec.serialize(value)
    assert encoded.ok
    decoded = codec.deserialize(encoded.value)
    assert decoded.ok
    assert decoded.value == value
    assert type(decoded.value) is type(value)
