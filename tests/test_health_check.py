from __future__ import annotations

import pytest

from consul_governance.config import CheckConfig
from consul_governance.discover.health import (
    CheckKind,
    HttpCheck,
    NoCheck,
    TcpCheck,
    build_health_check,
)


def test_http_protocol_builds_http_check_with_defaults() -> None:
    check = build_health_check("jsonrpc-http", "10.0.0.5", 9000)

    assert isinstance(check, HttpCheck)
    assert check.kind is CheckKind.HTTP
    assert check.to_check() == {
        "DeregisterCriticalServiceAfter": "90m",
        "HTTP": "http://10.0.0.5:9000/",
        "Interval": "1s",
    }


@pytest.mark.parametrize("protocol", ["jsonrpc", "jsonrpc-tcp-length-check", "multiplex.default"])
def test_tcp_protocols_build_tcp_check(protocol: str) -> None:
    config = CheckConfig(interval="5s", deregister_critical_service_after="10m")
    check = build_health_check(protocol, "10.0.0.5", 9000, config)

    assert isinstance(check, TcpCheck)
    assert check.to_check() == {
        "DeregisterCriticalServiceAfter": "10m",
        "TCP": "10.0.0.5:9000",
        "Interval": "5s",
    }


@pytest.mark.parametrize("protocol", ["grpc", "", None, "JSONRPC-HTTP"])
def test_other_protocols_have_no_check(protocol) -> None:
    check = build_health_check(protocol, "10.0.0.5", 9000)

    assert isinstance(check, NoCheck)
    assert check.to_check() is None
