"""Instance-id allocation.

Ids look like ``<base>`` or ``<base>-<N>``. Allocation appends one more than
the largest numeric suffix already present for the service name, so the
first instance of ``order-service`` becomes ``order-service-0``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from consul_governance.exceptions import RegistryTransportError
from consul_governance.utils.constant import ID_GLUE

if TYPE_CHECKING:
    from consul_governance.discover.registry.consul.client import ConsulAgent

__all__ = [
    "InstanceIdAllocator",
    "generate_id",
    "next_id",
    "numeric_suffix",
    "select_last_service_id",
]

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"[0-9]+")


def numeric_suffix(instance_id: str) -> int | None:
    """Return the integer tail after the last hyphen, or None if there is none."""
    _, glue, tail = str(instance_id).rpartition(ID_GLUE)
    if not glue or not _DECIMAL.fullmatch(tail):
        return None
    return int(tail)


def generate_id(last_id: str) -> str:
    base, glue, tail = last_id.rpartition(ID_GLUE)
    if glue and _DECIMAL.fullmatch(tail):
        end = int(tail)
    else:
        base, end = last_id, -1
    return f"{base}{ID_GLUE}{end + 1}"


def _max_suffixed(candidates: Iterable[tuple[str, str]]) -> str | None:
    # Strictly greater wins, so the first of equal suffixes is kept.
    max_id = -1
    last: str | None = None
    for key, instance_id in candidates:
        suffix = numeric_suffix(key)
        if suffix is not None and max_id < suffix:
            max_id = suffix
            last = instance_id
    return last


def select_last_service_id(services: Mapping[str, Any], name: str) -> str:
    """Pick the id with the largest numeric suffix among ``name``'s records.

    ``services`` is the agent listing, keyed by service id. Falls back to
    ``name`` when no record of the service carries a numeric suffix.
    """
    candidates = (
        (str(service_id), str(record.get("ID") or service_id))
        for service_id, record in services.items()
        if isinstance(record, Mapping) and record.get("Service") == name
    )
    last = _max_suffixed(candidates)
    return name if last is None else last


def next_id(existing_ids: Iterable[str], name: str, explicit_id: str | None = None) -> str:
    """Return the id for the next instance of ``name``.

    An explicit id is returned unchanged. ``existing_ids`` must already be
    restricted to ids of ``name``.
    """
    if explicit_id:
        return explicit_id
    last = _max_suffixed((str(i), str(i)) for i in existing_ids)
    return generate_id(name if last is None else last)


class InstanceIdAllocator:
    """Allocates instance ids from the live agent listing. Never cached."""

    def __init__(self, agent: ConsulAgent) -> None:
        self._agent = agent

    async def last_service_id(self, name: str) -> str:
        response = await self._agent.services()
        if response.status_code != 200:
            raise RegistryTransportError(
                message=f"Failed to list services while allocating an id for {name}",
                data={"status_code": response.status_code},
            )
        services = response.json() or {}
        if not isinstance(services, Mapping):
            logger.warning("Unexpected agent listing of type %s", type(services).__name__)
            return name
        return select_last_service_id(services, name)

    async def allocate(self, name: str, explicit_id: str | None = None) -> str:
        if explicit_id:
            return explicit_id
        return generate_id(await self.last_service_id(name))
