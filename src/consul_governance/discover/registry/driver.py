from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from consul_governance.discover.entities import DiscoveredNode, ServiceMetadata

Metadata = Mapping[str, Any] | ServiceMetadata | None


class GovernanceDriver(ABC):
    """Abstract base class for a service governance driver."""

    @abstractmethod
    async def get_nodes(self, uri: str | None, name: str, metadata: Metadata) -> list[DiscoveredNode]:
        """Returns the healthy nodes of a service.

        Args:
            uri: Base URI of the registry to query.
            name: The logical service name.
            metadata: Caller metadata; ``protocol`` filters the nodes.
        """

    @abstractmethod
    async def register(self, name: str, host: str, port: int, metadata: Metadata) -> None:
        """Registers a service instance with the registry.

        Args:
            name: The logical service name.
            host: Address the instance listens on.
            port: Port the instance listens on.
            metadata: Caller metadata; ``protocol`` is required, ``id`` optional.
        """

    @abstractmethod
    async def is_registered(self, name: str, host: str, port: int, metadata: Metadata) -> bool:
        """Checks whether the instance is already registered.

        Returns:
            True when the ``(name, protocol, host, port)`` slot is registered.
        """
