from __future__ import annotations

import asyncio
from collections.abc import Iterator

from consul_governance.discover.entities import RegistrationKey

__all__ = ["RegistrationCache"]


class RegistrationCache:
    """Process-lifetime memory of registrations known to exist.

    A best-effort accelerator; the registry stays authoritative. Entries are
    never evicted. The cache also hands out one lock per service name, the
    critical section around instance-id allocation and registration.
    """

    def __init__(self) -> None:
        self._keys: set[RegistrationKey] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    def has(self, key: RegistrationKey) -> bool:
        return key in self._keys

    def mark(self, key: RegistrationKey) -> None:
        self._keys.add(key)

    def lock_for(self, service_name: str) -> asyncio.Lock:
        lock = self._locks.get(service_name)
        if lock is None:
            lock = self._locks[service_name] = asyncio.Lock()
        return lock

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[RegistrationKey]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)
