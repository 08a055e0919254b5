"""Update notifications — an explicit subscribe/disconnect channel per store."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[Any], "Awaitable[None] | None"]


class Subscription:
    """Handle returned by :meth:`UpdateChannel.subscribe`.

    Call :meth:`disconnect` to stop receiving updates; ``connected`` tells
    whether the callback is still registered.
    """

    def __init__(self, channel: UpdateChannel, key: str, callback: UpdateCallback) -> None:
        self._channel = channel
        self.key = key
        self.callback = callback
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self._channel._remove(self)


class UpdateChannel:
    """Delivers values written through a store to that key's subscribers.

    Only writes made through the owning store are published; there is no
    polling for changes made elsewhere.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscription]] = {}

    def subscribe(self, key: str, callback: UpdateCallback) -> Subscription:
        subscription = Subscription(self, key, callback)
        self._subscribers.setdefault(key, []).append(subscription)
        return subscription

    def subscriber_count(self, key: str) -> int:
        return len(self._subscribers.get(key, []))

    async def publish(self, key: str, value: Any) -> int:
        """Call every subscriber of *key* with *value*.  Returns how many were called.

        A failing callback is logged and does not stop delivery to the rest.
        """
        delivered = 0
        for subscription in list(self._subscribers.get(key, [])):
            if not subscription.connected:
                continue
            try:
                result = subscription.callback(value)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("OnUpdate callback for key %s failed", key)
            delivered += 1
        return delivered

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.key)
        if not subscribers:
            return
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            del self._subscribers[subscription.key]
