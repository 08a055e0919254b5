"""Typed configuration for the request engine.

Replaces the service's runtime flag cache with one explicit object that is
handed to the builder and validators when a store is constructed.
"""

from __future__ import annotations

import os
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_ENV_PREFIX = "DATASTORE_"


class ProtocolGeneration(StrEnum):
    """Wire protocol generation spoken by a store."""

    LEGACY = "legacy"
    V1 = "v1"
    V2 = "v2"


class DataStoreConfig(BaseModel):
    """Recognized options and their defaults.

    Attributes:
        base_url: Persistence service root (no trailing slash).
        api_base_url: Root of the web API used for the access check.
        protocol: Generation used by non-versioned stores.  Versioned stores
            always speak ``v2``; ordered stores never do.
        versioned_by_default: Whether ``get_data_store`` returns versioned
            stores when the caller does not opt in explicitly.
        max_value_size: Maximum serialized value size in bytes.
        key_length_limit: Maximum length of keys, store names and scopes.
        max_page_size: Largest page size an ordered query may request.
        max_metadata_size: Maximum serialized metadata size in bytes.
        max_user_ids: Maximum number of user ids attached to a key.
        return_raw_on_deserialize_failure: Surface the raw payload when a
            stored value is not valid JSON instead of failing.
        check_object_key_for_scope: In all-scopes mode, require keys to
            carry a ``scope/`` prefix.
        url_encode: URL-encode names, scopes and keys.
        check_api_access: Verify API access before writes and listings.
        api_access_recheck_seconds: How long an access check result is cached.
        request_timeout: Per-request timeout handed to httpx, in seconds.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://gamepersistence.roblox.com"
    api_base_url: str = "https://api.roblox.com"
    protocol: ProtocolGeneration = ProtocolGeneration.V1
    versioned_by_default: bool = True
    max_value_size: int = Field(default=64 * 1024, gt=0)
    key_length_limit: int = Field(default=50, gt=0)
    max_page_size: int = Field(default=100, gt=0)
    max_metadata_size: int = Field(default=300, ge=0)
    max_user_ids: int = Field(default=4, ge=0)
    return_raw_on_deserialize_failure: bool = True
    check_object_key_for_scope: bool = False
    url_encode: bool = True
    check_api_access: bool = False
    api_access_recheck_seconds: float = Field(default=60.0, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls, **overrides: Any) -> DataStoreConfig:
        """Build a config from ``DATASTORE_*`` environment variables.

        Explicit *overrides* win over the environment, which wins over the
        defaults above.  Values are validated by pydantic, so ``"false"``
        and ``"0"`` are accepted for booleans.
        """
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)

    def service_root(self) -> str:
        return self.base_url.rstrip("/")
