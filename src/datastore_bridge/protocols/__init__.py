"""Wire protocol generations and the builder that selects between them."""

from datastore_bridge.protocols.base import PageResult, ReadResult, WireProtocol, WireRequest
from datastore_bridge.protocols.builder import RequestBuilder
from datastore_bridge.protocols.legacy import LegacyProtocol
from datastore_bridge.protocols.v1 import V1Protocol
from datastore_bridge.protocols.v2 import V2Protocol

__all__ = [
    "LegacyProtocol",
    "PageResult",
    "ReadResult",
    "RequestBuilder",
    "V1Protocol",
    "V2Protocol",
    "WireProtocol",
    "WireRequest",
]
