"""Service discovery and registration against a Consul registry.

Example:
    from consul_governance.discover import ConsulDriver

    async with ConsulDriver() as governance:
        await governance.ensure_registered(
            "order-service", "10.0.0.5", 9000, {"protocol": "jsonrpc-http"}
        )
        nodes = await governance.get_nodes(
            "http://127.0.0.1:8500", "order-service", {"protocol": "jsonrpc-http"}
        )
"""

from __future__ import annotations

from consul_governance.discover.entities import (
    DiscoveredNode,
    RegistrationKey,
    RegistrationPayload,
    ServiceMetadata,
)
from consul_governance.discover.health import (
    CheckStatus,
    HealthCheckSpec,
    HttpCheck,
    NoCheck,
    TcpCheck,
    build_health_check,
    filter_healthy_nodes,
)
from consul_governance.discover.registry import (
    ConsulAgent,
    ConsulDriver,
    ConsulHealth,
    DriverFactory,
    GovernanceDriver,
    InstanceIdAllocator,
    RegistrationCache,
    next_id,
)

__all__ = [
    "CheckStatus",
    "ConsulAgent",
    "ConsulDriver",
    "ConsulHealth",
    "DiscoveredNode",
    "DriverFactory",
    "GovernanceDriver",
    "HealthCheckSpec",
    "HttpCheck",
    "InstanceIdAllocator",
    "NoCheck",
    "RegistrationCache",
    "RegistrationKey",
    "RegistrationPayload",
    "ServiceMetadata",
    "TcpCheck",
    "build_health_check",
    "filter_healthy_nodes",
    "next_id",
]
