from __future__ import annotations

from .health_check import (
    PROTOCOL_CHECK_KINDS,
    CheckKind,
    HealthCheckSpec,
    HttpCheck,
    NoCheck,
    TcpCheck,
    build_health_check,
)
from .health_filter import filter_healthy_nodes, is_passing
from .health_status import CheckStatus

__all__ = [
    "CheckKind",
    "CheckStatus",
    "HealthCheckSpec",
    "HttpCheck",
    "NoCheck",
    "TcpCheck",
    "PROTOCOL_CHECK_KINDS",
    "build_health_check",
    "filter_healthy_nodes",
    "is_passing",
]
