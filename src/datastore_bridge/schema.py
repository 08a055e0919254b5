"""Pydantic models for the payloads the persistence service returns.

Every listing and v2 write/read response is validated through one of these
models; a ``pydantic.ValidationError`` is turned into a "malformed response"
error by the protocol that requested it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, Json, field_validator, model_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── v2 object endpoints ──────────────────────────────────────


class ObjectHeadersSchema(_WireModel):
    """Key information carried in the headers of a v2 object response.

    Attributes:
        created_time: ``roblox-object-created-time``
        version_created_time: ``roblox-object-version-created-time``
        etag: Version of the object, usually JSON-quoted.
        attributes: ``roblox-object-attributes`` (JSON object, default ``{}``)
        user_ids: ``roblox-object-userids`` (JSON array, default ``[]``)
    """

    created_time: datetime = Field(alias="roblox-object-created-time")
    version_created_time: datetime = Field(alias="roblox-object-version-created-time")
    etag: str
    attributes: Json[dict[str, Any]] = Field(
        default="{}", alias="roblox-object-attributes", validate_default=True
    )
    user_ids: Json[list[int]] = Field(
        default="[]", alias="roblox-object-userids", validate_default=True
    )

    @field_validator("etag")
    @classmethod
    def _unquote(cls, value: str) -> str:
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            return value[1:-1]
        return value


class ObjectWriteSchema(_WireModel):
    """Body returned by a v2 object write."""

    version: str
    deleted: bool = False
    content_length: int = Field(default=0, alias="contentLength")
    created_time: datetime = Field(alias="createdTime")
    object_created_time: datetime = Field(alias="objectCreatedTime")


# ── listings ─────────────────────────────────────────────────


class KeyListSchema(_WireModel):
    keys: list[str]
    last_returned_key: str | None = Field(default=None, alias="lastReturnedKey")

    @field_validator("keys", mode="before")
    @classmethod
    def _flatten(cls, value: Any) -> Any:
        # Newer deployments wrap each key as {"key": ...}
        if isinstance(value, list):
            return [item.get("key") if isinstance(item, dict) else item for item in value]
        return value


class VersionEntrySchema(_WireModel):
    version: str
    deleted: bool | None = False
    content_length: int = Field(default=0, alias="contentLength")
    created_time: datetime = Field(alias="createdTime")


class VersionListSchema(_WireModel):
    versions: list[VersionEntrySchema]
    last_returned_key: str | None = Field(default=None, alias="lastReturnedKey")


class StoreEntrySchema(_WireModel):
    name: str
    created_time: datetime | None = Field(default=None, alias="createdTime")
    updated_time: datetime | None = Field(default=None, alias="updatedTime")


class StoreListSchema(_WireModel):
    datastores: list[StoreEntrySchema]
    last_returned_key: str | None = Field(default=None, alias="lastReturnedKey")


class SortedEntrySchema(_WireModel):
    """One ordered entry.  Field names arrive in either case (``Target``/``target``)."""

    target: str
    value: Any

    @model_validator(mode="before")
    @classmethod
    def _lower_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {str(k).lower(): v for k, v in data.items()}
        return data


class SortedListSchema(_WireModel):
    """v1 ``sorted/list`` body."""

    entries: list[SortedEntrySchema]
    last_evaluated_key: str | None = Field(default=None, alias="lastEvaluatedKey")


class LegacySortedDataSchema(_WireModel):
    entries: list[SortedEntrySchema] = Field(alias="Entries")
    exclusive_start_key: str | None = Field(default=None, alias="ExclusiveStartKey")


class LegacySortedSchema(_WireModel):
    """Legacy ``getSortedValues`` body: ``{"data": {"Entries": [...], "ExclusiveStartKey": ...}}``."""

    data: LegacySortedDataSchema


# ── v1 / legacy scalar bodies ────────────────────────────────


class IncrementSchema(_WireModel):
    """v1 increment body."""

    value: Any
    usn: str | None = None

    @field_validator("usn", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return None if value is None else str(value)


class LegacyDataSchema(_WireModel):
    """Legacy ``{"data": ...}`` envelope.  ``data`` is a list for reads and a scalar for writes."""

    data: Any
