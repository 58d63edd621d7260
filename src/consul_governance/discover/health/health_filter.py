from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from consul_governance.discover.entities import DiscoveredNode
from consul_governance.discover.health.health_status import CheckStatus

__all__ = ["filter_healthy_nodes", "is_passing"]

logger = logging.getLogger(__name__)


def _to_port(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def is_passing(checks: Iterable[Any]) -> bool:
    """A node with no checks is healthy; any check not exactly ``passing`` fails it."""
    for check in checks:
        status = check.get("Status") if isinstance(check, Mapping) else None
        if status != CheckStatus.PASSING:
            return False
    return True


def filter_healthy_nodes(
    records: Iterable[Any] | None,
    required_protocol: str | None,
) -> list[DiscoveredNode]:
    """Turn ``/v1/health/service/<name>`` records into ready endpoints.

    Input order is preserved and duplicate endpoints pass through unchanged.
    Records of an unexpected shape are skipped rather than failing the batch.
    """
    nodes: list[DiscoveredNode] = []
    for record in records or []:
        if not isinstance(record, Mapping):
            logger.debug("Skipping health record of type %s", type(record).__name__)
            continue
        service = record.get("Service") or {}
        checks = record.get("Checks") or []
        if not isinstance(service, Mapping) or not isinstance(checks, list):
            logger.debug("Skipping malformed health record: %r", record)
            continue

        meta = service.get("Meta") or {}
        protocol = meta.get("Protocol") if isinstance(meta, Mapping) else None
        if protocol is not None and protocol != required_protocol:
            continue

        if not is_passing(checks):
            continue

        address = service.get("Address") or ""
        port = _to_port(service.get("Port", 0))
        # TODO: derive node weight from Service.Weights once the balancer consumes it.
        if isinstance(address, str) and address and port:
            nodes.append(DiscoveredNode(host=address, port=port))
    return nodes
