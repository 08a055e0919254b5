"""Payload helpers shared by more than one protocol generation."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from datastore_bridge import codec
from datastore_bridge.models import SortedEntry
from datastore_bridge.taxonomy import malformed, unparseable

if TYPE_CHECKING:
    from datastore_bridge.schema import SortedEntrySchema


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(data: Any) -> int | float:
    """Coerce an increment result (number or numeric string) to a number."""
    if isinstance(data, (str, bytes)):
        data = codec.deserialize(data).value
    if not is_number(data):
        raise unparseable(f"expected a number, got {type(data).__name__}")
    return data


def sorted_entries(entries: list[SortedEntrySchema]) -> list[SortedEntry]:
    items: list[SortedEntry] = []
    for entry in entries:
        result = codec.deserialize(entry.value)
        if not result.ok:
            raise unparseable(result.error)
        if not is_number(result.value):
            raise malformed(ordered=True, detail=f"entry {entry.target!r} is not numeric")
        items.append(SortedEntry(key=entry.target, value=result.value))
    return items


def isoformat(moment: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix, as the listing endpoints expect."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
