from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from consul_governance.config.models import CheckConfig
from consul_governance.utils.constant import RpcProtocols

__all__ = [
    "CheckKind",
    "NoCheck",
    "HttpCheck",
    "TcpCheck",
    "HealthCheckSpec",
    "PROTOCOL_CHECK_KINDS",
    "build_health_check",
]


class CheckKind(StrEnum):
    NONE = "none"
    HTTP = "http"
    TCP = "tcp"


@dataclass(frozen=True)
class NoCheck:
    """The instance registers without a health check."""

    kind: CheckKind = CheckKind.NONE

    def to_check(self) -> dict[str, str] | None:
        return None


@dataclass(frozen=True)
class HttpCheck:
    """Registry polls ``url`` over HTTP."""

    url: str
    interval: str
    deregister_critical_service_after: str
    kind: CheckKind = CheckKind.HTTP

    def to_check(self) -> dict[str, str]:
        return {
            "DeregisterCriticalServiceAfter": self.deregister_critical_service_after,
            "HTTP": self.url,
            "Interval": self.interval,
        }


@dataclass(frozen=True)
class TcpCheck:
    """Registry opens a TCP connection to ``address``."""

    address: str
    interval: str
    deregister_critical_service_after: str
    kind: CheckKind = CheckKind.TCP

    def to_check(self) -> dict[str, str]:
        return {
            "DeregisterCriticalServiceAfter": self.deregister_critical_service_after,
            "TCP": self.address,
            "Interval": self.interval,
        }


HealthCheckSpec = NoCheck | HttpCheck | TcpCheck

# Protocols missing from this table register without a check.
PROTOCOL_CHECK_KINDS: dict[str, CheckKind] = {
    RpcProtocols.JSONRPC_HTTP.value: CheckKind.HTTP,
    RpcProtocols.JSONRPC.value: CheckKind.TCP,
    RpcProtocols.JSONRPC_TCP_LENGTH_CHECK.value: CheckKind.TCP,
    RpcProtocols.MULTIPLEX_DEFAULT.value: CheckKind.TCP,
}


def build_health_check(
    protocol: str | None,
    host: str,
    port: int,
    config: CheckConfig | None = None,
) -> HealthCheckSpec:
    """Select the health check attached to a registration for ``protocol``."""
    config = config or CheckConfig()
    kind = PROTOCOL_CHECK_KINDS.get(protocol, CheckKind.NONE) if protocol else CheckKind.NONE
    if kind is CheckKind.HTTP:
        return HttpCheck(
            url=f"http://{host}:{port}/",
            interval=config.interval,
            deregister_critical_service_after=config.deregister_critical_service_after,
        )
    if kind is CheckKind.TCP:
        return TcpCheck(
            address=f"{host}:{port}",
            interval=config.interval,
            deregister_critical_service_after=config.deregister_critical_service_after,
        )
    return NoCheck()
