"""RequestBuilder — selects the wire protocol for a store.

Uses the Registry pattern to map protocol generations to protocol classes,
so a new generation can be plugged in without touching the stores.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from datastore_bridge.config import ProtocolGeneration
from datastore_bridge.protocols.legacy import LegacyProtocol
from datastore_bridge.protocols.v1 import V1Protocol
from datastore_bridge.protocols.v2 import V2Protocol

if TYPE_CHECKING:
    from datastore_bridge.config import DataStoreConfig
    from datastore_bridge.identity import StoreIdentity
    from datastore_bridge.protocols.base import WireProtocol
    from datastore_bridge.session import SessionContext


class RequestBuilder:
    """Creates the :class:`WireProtocol` a store speaks.

    Example:
        protocol = RequestBuilder.create(identity, config, session)
        request = protocol.build_get("user/1")
    """

    # Class-level registry mapping generations to protocol classes
    _registry: ClassVar[dict[ProtocolGeneration, type[WireProtocol]]] = {
        ProtocolGeneration.LEGACY: LegacyProtocol,
        ProtocolGeneration.V1: V1Protocol,
        ProtocolGeneration.V2: V2Protocol,
    }

    @classmethod
    def register(cls, generation: ProtocolGeneration, protocol_class: type[WireProtocol]) -> None:
        """Register (or replace) the protocol class for *generation*.

        Raises:
            ValueError: If ``protocol_class.generation`` names another generation.
        """
        declared = getattr(protocol_class, "generation", generation)
        if declared != generation:
            raise ValueError(
                f"Protocol {protocol_class.__name__} declares generation='{declared}' "
                f"but is being registered as '{generation}'"
            )
        cls._registry[generation] = protocol_class

    @classmethod
    def registered_generations(cls) -> list[ProtocolGeneration]:
        return list(cls._registry.keys())

    @classmethod
    def resolve(
        cls, identity: StoreIdentity, config: DataStoreConfig, *, versioned: bool = False
    ) -> ProtocolGeneration:
        """Pick the generation for a store.

        Versioned stores always speak v2.  Ordered stores have no v2 form and
        fall back to v1 when v2 is configured.  Everything else follows
        ``config.protocol``.
        """
        if versioned and not identity.is_ordered:
            return ProtocolGeneration.V2
        if config.protocol is ProtocolGeneration.V2 and (identity.is_ordered or identity.is_legacy):
            return ProtocolGeneration.V1
        return config.protocol

    @classmethod
    def create(
        cls,
        identity: StoreIdentity,
        config: DataStoreConfig,
        session: SessionContext,
        generation: ProtocolGeneration | None = None,
        *,
        versioned: bool = False,
    ) -> WireProtocol:
        """Instantiate the protocol for *identity*.

        Args:
            identity: Store the protocol will address.
            config: Limits and URL roots.
            session: Supplies place and universe ids for URLs.
            generation: Explicit generation; resolved from *config* when omitted.
            versioned: Whether the store is a versioned ``DataStore``.

        Raises:
            KeyError: If no protocol is registered for the generation.
        """
        if generation is None:
            generation = cls.resolve(identity, config, versioned=versioned)
        return cls._registry[generation](identity, config, session)
