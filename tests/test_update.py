"""Tests for UpdateEngine — one read, one conditional write."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from datastore_bridge import (
    ConflictError,
    DataStoreConfig,
    ErrorKind,
    KeyInfo,
    RequestValidationError,
    UpdateCancelledError,
    UpstreamError,
)
from datastore_bridge.identity import StoreIdentity
from datastore_bridge.protocols import ReadResult, WireRequest
from datastore_bridge.update import UpdateEngine, read_current

OBSERVED = ReadResult(value=10, key_info=KeyInfo(version="v7"), exists=True, token="v7")


@pytest.fixture
def protocol():
    protocol = MagicMock()
    protocol.build_get.return_value = WireRequest("GET", "http://x/get")
    protocol.parse_get.return_value = OBSERVED
    protocol.build_set_if.return_value = WireRequest("POST", "http://x/set")
    protocol.parse_set_if.return_value = KeyInfo(version="v8")
    return protocol


@pytest.fixture
def wire():
    wire = MagicMock()
    wire.send = AsyncMock(return_value=httpx.Response(200))
    return wire


@pytest.fixture
def engine(protocol, wire):
    return UpdateEngine(StoreIdentity(name="S"), DataStoreConfig(), protocol, wire)


# ── happy path ───────────────────────────────────────────────


async def test_single_conditional_write(engine, protocol, wire):
    outcome = await engine.run("k", lambda old, info: old + 1)

    assert outcome.value == 11
    assert outcome.key_info.version == "v8"
    assert wire.send.await_count == 2
    protocol.build_set_if.assert_called_once_with("k", "11", OBSERVED, None, None)


async def test_transform_receives_previous_and_key_info(engine):
    calls = []
    await engine.run("k", lambda old, info: calls.append((old, info.version)) or 1)
    assert calls == [(10, "v7")]


async def test_tuple_result_carries_attributes(engine, protocol):
    outcome = await engine.run("k", lambda old, info: (5, [1], {"m": 1}))
    assert outcome.user_ids == [1]
    assert outcome.metadata == {"m": 1}
    protocol.build_set_if.assert_called_once_with("k", "5", OBSERVED, [1], {"m": 1})


async def test_bare_value_keeps_previous_attributes(engine, protocol):
    previous = KeyInfo(version="v7", user_ids=[3], metadata={"tier": "gold"})
    protocol.parse_get.return_value = ReadResult(
        value=10, key_info=previous, exists=True, token="v7"
    )

    outcome = await engine.run("k", lambda old, info: old + 1)
    assert outcome.key_info.version == "v8"
    assert outcome.key_info.user_ids == [3]
    assert outcome.key_info.metadata == {"tier": "gold"}


async def test_missing_key_reads_as_none(engine, protocol, wire):
    wire.send.side_effect = [
        UpstreamError(ErrorKind.KEY_NOT_FOUND, status_code=404, upstream_code=11),
        httpx.Response(200),
    ]
    seen = []
    await engine.run("k", lambda old, info: seen.append((old, info)) or 1)
    assert seen == [(None, None)]
    observed = protocol.build_set_if.call_args.args[2]
    assert not observed.exists


# ── cancellation ─────────────────────────────────────────────


@pytest.mark.parametrize("result", [None, ()])
async def test_empty_result_cancels(engine, wire, result):
    with pytest.raises(UpdateCancelledError) as exc_info:
        await engine.run("k", lambda old, info: result)
    assert exc_info.value.kind is ErrorKind.UPDATE_CANCELLED
    assert wire.send.await_count == 1


async def test_awaitable_result_cancels(engine, wire):
    async def transform(old, info):
        return old

    with pytest.raises(UpdateCancelledError) as exc_info:
        await engine.run("k", transform)
    assert exc_info.value.kind is ErrorKind.TRANSFORM_YIELDED
    assert wire.send.await_count == 1


async def test_oversized_tuple(engine, wire):
    with pytest.raises(RequestValidationError):
        await engine.run("k", lambda old, info: (1, None, None, None))
    assert wire.send.await_count == 1


async def test_invalid_attributes_block_the_write(engine, wire):
    with pytest.raises(RequestValidationError) as exc_info:
        await engine.run("k", lambda old, info: (1, ["x"]))
    assert exc_info.value.kind is ErrorKind.USERID_ATTRIBUTE_INVALID
    assert wire.send.await_count == 1


# ── conflicts and errors ─────────────────────────────────────


async def test_conflict_is_not_retried(engine, wire):
    wire.send.side_effect = [httpx.Response(200), ConflictError(status_code=412)]
    with pytest.raises(ConflictError):
        await engine.run("k", lambda old, info: old + 1)
    assert wire.send.await_count == 2


async def test_transform_exceptions_propagate(engine, wire):
    def broken(old, info):
        raise KeyError("boom")

    with pytest.raises(KeyError):
        await engine.run("k", broken)
    assert wire.send.await_count == 1


async def test_read_current_reraises_other_errors(protocol, wire):
    wire.send.side_effect = UpstreamError(ErrorKind.API_SERVICES_REJECTED, "x", status_code=500)
    with pytest.raises(UpstreamError):
        await read_current(wire, protocol, WireRequest("GET", "http://x"))
