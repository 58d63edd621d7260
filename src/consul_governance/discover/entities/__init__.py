from .service_node import (
    DiscoveredNode,
    RegistrationKey,
    RegistrationPayload,
    ServiceMetadata,
)

__all__ = [
    "DiscoveredNode",
    "RegistrationKey",
    "RegistrationPayload",
    "ServiceMetadata",
]
