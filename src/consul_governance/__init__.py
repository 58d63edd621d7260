"""Public API for consul_governance.

Re-exports the supported surface of the library. Import from here when
possible.
"""

from consul_governance.discover import (
    ConsulDriver,
    DiscoveredNode,
    DriverFactory,
    GovernanceDriver,
    RegistrationCache,
    RegistrationKey,
    ServiceMetadata,
)
from consul_governance.exceptions import (
    ComponentRequiredError,
    GovernanceException,
    RegistryTransportError,
)

__all__ = [
    "ComponentRequiredError",
    "ConsulDriver",
    "DiscoveredNode",
    "DriverFactory",
    "GovernanceDriver",
    "GovernanceException",
    "RegistrationCache",
    "RegistrationKey",
    "RegistryTransportError",
    "ServiceMetadata",
]
