from __future__ import annotations

import pytest

from consul_governance.discover.registry import ConsulDriver, DriverFactory, RegistrationCache
from fakes import FakeAgent


@pytest.fixture(autouse=True)
def _clear_driver_instances():
    DriverFactory.clear_instances()
    yield
    DriverFactory.clear_instances()


@pytest.fixture()
def agent() -> FakeAgent:
    return FakeAgent()


@pytest.fixture()
def driver(agent: FakeAgent) -> ConsulDriver:
    return ConsulDriver(agent=agent, cache=RegistrationCache())
