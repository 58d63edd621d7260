from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from consul_governance.config.models import GovernanceConfig
from consul_governance.discover.entities import (
    DiscoveredNode,
    RegistrationKey,
    RegistrationPayload,
    ServiceMetadata,
)
from consul_governance.discover.health import build_health_check, filter_healthy_nodes
from consul_governance.discover.registry.consul.client import ConsulAgent, ConsulHealth
from consul_governance.discover.registry.driver import GovernanceDriver, Metadata
from consul_governance.discover.registry.driver_factory import driver
from consul_governance.discover.registry.instance_id import InstanceIdAllocator
from consul_governance.discover.registry.registration_cache import RegistrationCache
from consul_governance.exceptions import (
    ComponentRequiredError,
    RegistryTransportError,
    SerializationError,
)
from consul_governance.observability.logging import LogContext
from consul_governance.utils.constant import TAG_GLUE

logger = logging.getLogger(__name__)

HealthFactory = Callable[[str], ConsulHealth]


def _record_tag(record: Mapping[str, Any]) -> str | None:
    meta = record.get("Meta")
    protocol = meta.get("Protocol") if isinstance(meta, Mapping) else None
    fields = [record.get("Service"), record.get("Address"), record.get("Port"), protocol]
    if any(value is None for value in fields):
        return None
    return TAG_GLUE.join(str(value) for value in fields)


@driver(name="consul")
class ConsulDriver(GovernanceDriver):
    """Registers and discovers service instances through a Consul agent.

    Args:
        config: Driver settings; defaults apply when omitted.
        agent: Agent client used for listing and registration.
        health_factory: Builds a health client for a registry base URI.
        cache: Registration cache; each driver gets its own by default.
    """

    def __init__(
        self,
        config: GovernanceConfig | None = None,
        agent: ConsulAgent | None = None,
        health_factory: HealthFactory | None = None,
        cache: RegistrationCache | None = None,
    ) -> None:
        self.config = config or GovernanceConfig()
        self._agent = agent
        self._health_factory = health_factory or self._default_health_factory
        self._healths: dict[str, ConsulHealth] = {}
        self.registered_services = cache if cache is not None else RegistrationCache()

    def _default_health_factory(self, base_uri: str) -> ConsulHealth:
        return ConsulHealth(base_uri, timeout=self.config.consul.timeout)

    def client(self) -> ConsulAgent:
        if self._agent is None:
            uri = self.config.consul.uri
            if not uri:
                raise ComponentRequiredError(
                    message="A consul agent uri is required to register services.",
                )
            self._agent = ConsulAgent(uri, timeout=self.config.consul.timeout)
        return self._agent

    def create_consul_health(self, base_uri: str | None) -> ConsulHealth:
        uri = base_uri or self.config.consul.uri
        if not uri:
            raise ComponentRequiredError(
                message="A consul uri is required if you want to fetch the nodes info from consul.",
            )
        health = self._healths.get(uri)
        if health is None:
            health = self._healths[uri] = self._health_factory(uri)
        return health

    async def get_nodes(self, uri: str | None, name: str, metadata: Metadata) -> list[DiscoveredNode]:
        metadata = ServiceMetadata.from_mapping(metadata)
        response = await self.create_consul_health(uri).service(name)
        if response.status_code != 200:
            raise RegistryTransportError(
                message=f"Failed to fetch nodes of service {name} from consul.",
                data={"status_code": response.status_code, "uri": uri},
            )
        return filter_healthy_nodes(response.json(), metadata.protocol)

    async def get_last_service_id(self, name: str) -> str:
        return await InstanceIdAllocator(self.client()).last_service_id(name)

    async def register(self, name: str, host: str, port: int, metadata: Metadata) -> None:
        metadata = ServiceMetadata.from_mapping(metadata)
        async with self.registered_services.lock_for(name):
            await self._register(name, host, port, metadata)

    async def is_registered(self, name: str, host: str, port: int, metadata: Metadata) -> bool:
        metadata = ServiceMetadata.from_mapping(metadata)
        key = RegistrationKey(name, metadata.protocol, host, port)
        if self.registered_services.has(key):
            return True
        async with self.registered_services.lock_for(name):
            return await self._is_registered(key)

    async def ensure_registered(self, name: str, host: str, port: int, metadata: Metadata) -> bool:
        """Register the instance unless it is already registered.

        Returns:
            True if the instance was already registered.
        """
        metadata = ServiceMetadata.from_mapping(metadata)
        key = RegistrationKey(name, metadata.protocol, host, port)
        async with self.registered_services.lock_for(name):
            if await self._is_registered(key):
                logger.debug("Service %s is already registered at %s:%s.", name, host, port)
                return True
            await self._register(name, host, port, metadata)
            return False

    async def _register(self, name: str, host: str, port: int, metadata: ServiceMetadata) -> None:
        next_id = await InstanceIdAllocator(self.client()).allocate(name, metadata.id)
        protocol = metadata.protocol
        check = build_health_check(protocol, host, port, self.config.consul.check)
        payload = RegistrationPayload(
            name=name,
            id=next_id,
            address=host,
            port=port,
            meta={"Protocol": protocol},
            check=check.to_check(),
        )
        with LogContext(service_name=name, instance_id=next_id):
            try:
                response = await self.client().register_service(payload.to_request_body())
            except RegistryTransportError as exc:
                logger.warning("Service %s register to the consul failed: %s", name, exc.message)
                return
            if response.status_code == 200:
                self.registered_services.mark(RegistrationKey(name, protocol, host, port))
                logger.info("Service %s:%s register to the consul successfully.", name, next_id)
            else:
                logger.warning(
                    "Service %s register to the consul failed with status %s.",
                    name,
                    response.status_code,
                )

    async def _is_registered(self, key: RegistrationKey) -> bool:
        if self.registered_services.has(key):
            return True
        try:
            response = await self.client().services()
            if response.status_code != 200:
                logger.warning(
                    "Service %s registration lookup failed with status %s.",
                    key.service_name,
                    response.status_code,
                )
                return False
            services = response.json() or {}
        except (RegistryTransportError, SerializationError) as exc:
            logger.warning("Service %s registration lookup failed: %s", key.service_name, exc.message)
            return False
        if not isinstance(services, Mapping):
            logger.warning("Unexpected agent listing of type %s", type(services).__name__)
            return False

        tag = key.tag
        for record in services.values():
            if not isinstance(record, Mapping):
                continue
            if _record_tag(record) == tag:
                self.registered_services.mark(key)
                return True
        return False

    async def aclose(self) -> None:
        if self._agent is not None:
            await self._agent.aclose()
        for health in self._healths.values():
            await health.aclose()
        self._healths.clear()

    async def __aenter__(self) -> ConsulDriver:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
