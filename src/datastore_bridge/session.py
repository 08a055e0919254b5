"""SessionContext — the caller identity that travels with every request."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from datastore_bridge.exceptions import DataStoreConfigError


@dataclass(frozen=True)
class SessionContext:
    """Credentials and place context established by the caller.

    The authentication handshake that produces these values happens outside
    this library.  The context is only read, never refreshed.

    Attributes:
        cookie:      The ``.ROBLOSECURITY`` session cookie.
        place_id:    Place the caller is acting for.  Must be positive.
        universe_id: Universe owning the data stores.  Required by the
                     versioned (v2) endpoints.
        extra_headers: Additional headers sent on every request.
    """

    cookie: str
    place_id: int
    universe_id: int = 0
    extra_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> SessionContext:
        """Read ``ROBLOSECURITY``, ``DATASTORE_PLACE_ID`` and ``DATASTORE_UNIVERSE_ID``."""
        try:
            place_id = int(os.getenv("DATASTORE_PLACE_ID", "0"))
            universe_id = int(os.getenv("DATASTORE_UNIVERSE_ID", "0"))
        except ValueError as exc:
            raise DataStoreConfigError(f"place/universe id must be an integer: {exc}") from exc
        return cls(
            cookie=os.getenv("ROBLOSECURITY", ""),
            place_id=place_id,
            universe_id=universe_id,
        )

    def validate(self) -> None:
        if self.place_id < 1:
            raise DataStoreConfigError("Place has to be opened with Edit button to access DataStores")

    def headers(self) -> dict[str, str]:
        """Headers identifying the caller on every request."""
        headers = {
            "Cache-Control": "no-cache",
            "Cookie": f".ROBLOSECURITY={self.cookie}",
            "Roblox-Place-Id": str(self.place_id),
            "Roblox-Universe-Id": str(self.universe_id),
            "Requester": "Server",
        }
        headers.update(self.extra_headers)
        return headers
