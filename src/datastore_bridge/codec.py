"""Variant codec — JSON encoding of stored values, reported rather than raised."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

_SEPARATORS = (",", ":")


@dataclass(frozen=True)
class CodecResult:
    """Outcome of a single serialize/deserialize attempt.

    Attributes:
        ok:    ``True`` when the conversion succeeded.
        value: Encoded string (serialize) or decoded value (deserialize).
               ``None`` on failure.
        raw:   The untouched input on deserialize failure, so callers can
               surface it instead of failing.
        error: Short description of why the conversion failed.
    """

    ok: bool
    value: Any = None
    raw: Any = None
    error: str = ""

    # ── Factory helpers ──────────────────────────────────────

    @staticmethod
    def success(value: Any) -> CodecResult:
        return CodecResult(ok=True, value=value)

    @staticmethod
    def failure(error: str, raw: Any = None) -> CodecResult:
        return CodecResult(ok=False, raw=raw, error=error)


def serialize(value: Any) -> CodecResult:
    """Encode *value* as compact JSON.

    Cyclic structures, non-finite floats and types JSON cannot represent
    produce a failed result instead of an exception.
    """
    try:
        encoded = json.dumps(value, separators=_SEPARATORS, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        return CodecResult.failure(str(exc))
    return CodecResult.success(encoded)


def deserialize(wire: Any) -> CodecResult:
    """Decode a wire payload.

    * ``""`` decodes to ``""``.
    * Anything that is not ``str``/``bytes`` is assumed to be parsed already
      and is passed through unchanged.
    """
    if isinstance(wire, (bytes, bytearray)):
        try:
            wire = wire.decode("utf-8")
        except UnicodeDecodeError as exc:
            return CodecResult.failure(str(exc), raw=wire)
    if not isinstance(wire, str):
        return CodecResult.success(wire)
    if wire == "":
        return CodecResult.success("")
    try:
        return CodecResult.success(json.loads(wire))
    except ValueError as exc:
        return CodecResult.failure(str(exc), raw=wire)


def encoded_size(encoded: str) -> int:
    """Byte size of an encoded value as the service measures it."""
    return len(encoded.encode("utf-8"))
