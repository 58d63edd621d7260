from __future__ import annotations

import asyncio
import logging

import pytest

from consul_governance.config import GovernanceConfig
from consul_governance.discover.entities import DiscoveredNode, RegistrationKey, ServiceMetadata
from consul_governance.discover.registry import ConsulDriver, DriverFactory, RegistrationCache
from consul_governance.exceptions import (
    ComponentRequiredError,
    RegistryTransportError,
    SerializationError,
)
from fakes import FakeAgent, FakeHealth, transport_error

HTTP = {"protocol": "jsonrpc-http"}


def _health_driver(records, status_code: int = 200) -> tuple[ConsulDriver, list[FakeHealth]]:
    created: list[FakeHealth] = []

    def factory(base_uri: str) -> FakeHealth:
        health = FakeHealth(base_uri, records, status_code)
        created.append(health)
        return health

    return ConsulDriver(agent=FakeAgent(), health_factory=factory), created


class TestGetNodes:
    @pytest.mark.asyncio
    async def test_returns_passing_nodes_matching_protocol(self) -> None:
        records = [
            {
                "Service": {"Address": "10.0.0.1", "Port": 9000, "Meta": {"Protocol": "jsonrpc-http"}},
                "Checks": [{"Status": "passing"}],
            },
            {
                "Service": {"Address": "10.0.0.2", "Port": 9000, "Meta": {"Protocol": "jsonrpc-http"}},
                "Checks": [{"Status": "critical"}],
            },
        ]
        driver, created = _health_driver(records)

        nodes = await driver.get_nodes("http://consul:8500", "order-service", HTTP)

        assert nodes == [DiscoveredNode(host="10.0.0.1", port=9000)]
        assert created[0].base_uri == "http://consul:8500"
        assert created[0].queried == ["order-service"]

    @pytest.mark.asyncio
    async def test_empty_result_is_empty_list(self) -> None:
        driver, _ = _health_driver([])
        assert await driver.get_nodes("http://consul:8500", "missing", HTTP) == []

    @pytest.mark.asyncio
    async def test_health_client_is_cached_per_uri(self) -> None:
        driver, created = _health_driver([])

        await driver.get_nodes("http://a:8500", "svc", HTTP)
        await driver.get_nodes("http://a:8500", "svc", HTTP)
        await driver.get_nodes("http://b:8500", "svc", HTTP)

        assert [health.base_uri for health in created] == ["http://a:8500", "http://b:8500"]

    @pytest.mark.asyncio
    async def test_non_success_status_propagates(self) -> None:
        driver, _ = _health_driver([], status_code=500)

        with pytest.raises(RegistryTransportError) as exc_info:
            await driver.get_nodes("http://consul:8500", "svc", HTTP)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_missing_uri_requires_component(self) -> None:
        config = GovernanceConfig.from_dict({"drivers": {"consul": {"uri": None}}})
        driver = ConsulDriver(config=config, agent=FakeAgent())

        with pytest.raises(ComponentRequiredError):
            await driver.get_nodes(None, "svc", HTTP)

    @pytest.mark.asyncio
    async def test_falls_back_to_configured_uri(self) -> None:
        driver, created = _health_driver([])
        await driver.get_nodes(None, "svc", HTTP)
        assert created[0].base_uri == "http://127.0.0.1:8500"


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_against_empty_registry(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await driver.register("order-service", "10.0.0.5", 9000, HTTP)

        assert agent.registered == [
            {
                "Name": "order-service",
                "ID": "order-service-0",
                "Address": "10.0.0.5",
                "Port": 9000,
                "Meta": {"Protocol": "jsonrpc-http"},
                "Check": {
                    "DeregisterCriticalServiceAfter": "90m",
                    "HTTP": "http://10.0.0.5:9000/",
                    "Interval": "1s",
                },
            }
        ]
        key = RegistrationKey("order-service", "jsonrpc-http", "10.0.0.5", 9000)
        assert driver.registered_services.has(key)

    @pytest.mark.asyncio
    async def test_tcp_check_uses_configured_settings(self) -> None:
        agent = FakeAgent()
        config = GovernanceConfig.from_dict(
            {"drivers": {"consul": {"check": {"interval": "3s", "deregister_critical_service_after": "5m"}}}}
        )
        driver = ConsulDriver(config=config, agent=agent)

        await driver.register("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})

        assert agent.registered[0]["Check"] == {
            "DeregisterCriticalServiceAfter": "5m",
            "TCP": "10.0.0.5:9000",
            "Interval": "3s",
        }

    @pytest.mark.asyncio
    async def test_unknown_protocol_registers_without_check(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await driver.register("svc", "10.0.0.5", 9000, {"protocol": "grpc"})
        assert "Check" not in agent.registered[0]

    @pytest.mark.asyncio
    async def test_explicit_id_skips_allocation(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await driver.register("svc", "10.0.0.5", 9000, ServiceMetadata(protocol="jsonrpc", id="svc-custom"))

        assert agent.registered[0]["ID"] == "svc-custom"
        assert agent.services_calls == 0

    @pytest.mark.asyncio
    async def test_successive_registrations_increment_id(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await driver.register("svc", "10.0.0.5", 9000, HTTP)
        await driver.register("svc", "10.0.0.6", 9000, HTTP)

        assert [body["ID"] for body in agent.registered] == ["svc-0", "svc-1"]

    @pytest.mark.asyncio
    async def test_failed_status_does_not_mark_cache(self, caplog: pytest.LogCaptureFixture) -> None:
        agent = FakeAgent(register_status=500)
        driver = ConsulDriver(agent=agent)

        with caplog.at_level(logging.WARNING):
            await driver.register("svc", "10.0.0.5", 9000, HTTP)

        assert len(driver.registered_services) == 0
        assert "Service svc register to the consul failed" in caplog.text

    @pytest.mark.asyncio
    async def test_transport_error_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        agent = FakeAgent(register_error=transport_error())
        driver = ConsulDriver(agent=agent)

        with caplog.at_level(logging.WARNING):
            await driver.register("svc", "10.0.0.5", 9000, HTTP)

        assert len(driver.registered_services) == 0
        assert "connection refused" in caplog.text

    @pytest.mark.asyncio
    async def test_success_is_logged(self, driver: ConsulDriver, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            await driver.register("svc", "10.0.0.5", 9000, HTTP)
        assert "Service svc:svc-0 register to the consul successfully." in caplog.text

    @pytest.mark.asyncio
    async def test_concurrent_registrations_allocate_distinct_ids(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await asyncio.gather(
            driver.register("svc", "10.0.0.5", 9000, HTTP),
            driver.register("svc", "10.0.0.6", 9000, HTTP),
            driver.register("svc", "10.0.0.7", 9000, HTTP),
        )

        assert sorted(body["ID"] for body in agent.registered) == ["svc-0", "svc-1", "svc-2"]


class TestIsRegistered:
    @pytest.mark.asyncio
    async def test_cache_hit_skips_remote_call(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await driver.register("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc", "id": "svc-a"})

        assert await driver.is_registered("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})
        assert agent.services_calls == 0

    @pytest.mark.asyncio
    async def test_remote_match_marks_cache(self) -> None:
        agent = FakeAgent(
            {
                "svc-3": {
                    "ID": "svc-3",
                    "Service": "svc",
                    "Address": "10.0.0.5",
                    "Port": 9000,
                    "Meta": {"Protocol": "jsonrpc"},
                }
            }
        )
        driver = ConsulDriver(agent=agent)

        assert await driver.is_registered("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})
        assert await driver.is_registered("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})
        assert agent.services_calls == 1

    @pytest.mark.asyncio
    async def test_protocol_is_part_of_the_key(self) -> None:
        agent = FakeAgent(
            {
                "svc-0": {
                    "Service": "svc",
                    "Address": "10.0.0.5",
                    "Port": 9000,
                    "Meta": {"Protocol": "jsonrpc"},
                }
            }
        )
        driver = ConsulDriver(agent=agent)

        assert not await driver.is_registered("svc", "10.0.0.5", 9000, HTTP)

    @pytest.mark.asyncio
    async def test_incomplete_records_are_skipped(self) -> None:
        agent = FakeAgent(
            {
                "a": {"Service": "svc", "Address": "10.0.0.5", "Port": 9000},
                "b": {"Service": "svc", "Address": "10.0.0.5", "Meta": {"Protocol": "jsonrpc"}},
                "c": "garbage",
            }
        )
        driver = ConsulDriver(agent=agent)

        assert not await driver.is_registered("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})
        assert len(driver.registered_services) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "agent",
        [
            FakeAgent(services_status=503),
            FakeAgent(services_error=transport_error()),
            FakeAgent(services={"x": object()}, services_status=200),
        ],
    )
    async def test_failed_listing_is_not_registered(self, agent: FakeAgent) -> None:
        driver = ConsulDriver(agent=agent)

        assert not await driver.is_registered("svc", "10.0.0.5", 9000, HTTP)
        assert len(driver.registered_services) == 0

    @pytest.mark.asyncio
    async def test_undecodable_listing_is_not_registered(self, caplog: pytest.LogCaptureFixture) -> None:
        agent = FakeAgent()
        agent.services_payload = SerializationError(message="bad body")
        driver = ConsulDriver(agent=agent)

        with caplog.at_level(logging.WARNING):
            assert not await driver.is_registered("svc", "10.0.0.5", 9000, HTTP)
        assert "bad body" in caplog.text


class TestEnsureRegistered:
    @pytest.mark.asyncio
    async def test_registers_once(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        assert await driver.ensure_registered("svc", "10.0.0.5", 9000, HTTP) is False
        assert await driver.ensure_registered("svc", "10.0.0.5", 9000, HTTP) is True

        assert len(agent.registered) == 1

    @pytest.mark.asyncio
    async def test_existing_remote_registration_is_reused(self) -> None:
        agent = FakeAgent(
            {
                "svc-4": {
                    "Service": "svc",
                    "Address": "10.0.0.5",
                    "Port": 9000,
                    "Meta": {"Protocol": "jsonrpc-http"},
                }
            }
        )
        driver = ConsulDriver(agent=agent)

        assert await driver.ensure_registered("svc", "10.0.0.5", 9000, HTTP) is True
        assert agent.registered == []

    @pytest.mark.asyncio
    async def test_concurrent_bootstrap_registers_once(self, driver: ConsulDriver, agent: FakeAgent) -> None:
        await asyncio.gather(
            *(driver.ensure_registered("svc", "10.0.0.5", 9000, HTTP) for _ in range(3))
        )
        assert len(agent.registered) == 1


@pytest.mark.asyncio
async def test_get_last_service_id() -> None:
    agent = FakeAgent({"x-3": {"Service": "x"}, "x-7": {"Service": "x"}, "y-9": {"Service": "y"}})
    driver = ConsulDriver(agent=agent)

    assert await driver.get_last_service_id("x") == "x-7"


@pytest.mark.asyncio
async def test_drivers_do_not_share_caches() -> None:
    first = ConsulDriver(agent=FakeAgent())
    second = ConsulDriver(agent=FakeAgent(services_status=500))
    await first.register("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc", "id": "svc-a"})

    assert await first.is_registered("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})
    assert not await second.is_registered("svc", "10.0.0.5", 9000, {"protocol": "jsonrpc"})


@pytest.mark.asyncio
async def test_aclose_closes_agent(agent: FakeAgent) -> None:
    async with ConsulDriver(agent=agent, cache=RegistrationCache()):
        pass
    assert agent.closed


def test_driver_factory_builds_consul_driver() -> None:
    created = DriverFactory.from_driver("consul", config=GovernanceConfig(), unknown="ignored")

    assert isinstance(created, ConsulDriver)
    assert DriverFactory.from_driver("consul") is created
    assert "consul" in DriverFactory.list_drivers()


def test_driver_factory_unknown_driver() -> None:
    with pytest.raises(ComponentRequiredError) as exc_info:
        DriverFactory.from_driver("etcd")
    assert exc_info.value.data == {"driver": "etcd"}
