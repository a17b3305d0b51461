"""
In-memory host repository

A thread-safe, process-local store with the same semantics as the MongoDB
repository. Used when the CLI runs without a database and by the test suite.
"""

import threading
from dataclasses import replace
from typing import Dict, List

from .exceptions import DeleteFailedError, DuplicateHostError, HostNotFoundError, UpdateFailedError
from .logging_config import get_logger
from .models import HostRecord
from .repository import HostRepository


class InMemoryHostRepository(HostRepository):
    """Dictionary-backed HostRepository."""

    def __init__(self) -> None:
        self.logger = get_logger(f"{__name__}.InMemoryHostRepository")
        self._lock = threading.Lock()
        self._hosts: Dict[int, HostRecord] = {}
        self._by_ip: Dict[str, int] = {}
        self._next_id = 1

    def migrate(self) -> None:
        self.logger.debug("In-memory host store ready")

    def create(self, host: HostRecord) -> HostRecord:
        with self._lock:
            if host.ipv4_address in self._by_ip:
                raise DuplicateHostError(host.ipv4_address)

            stored = replace(host, id=self._next_id)
            self._next_id += 1
            self._hosts[stored.id] = stored
            self._by_ip[stored.ipv4_address] = stored.id

        self.logger.debug(f"Created host {stored.ipv4_address} with id {stored.id}")
        return replace(stored)

    def get_by_ip(self, ip: str) -> HostRecord:
        with self._lock:
            host_id = self._by_ip.get(ip)
            if host_id is None:
                raise HostNotFoundError(ipv4_address=ip)
            return replace(self._hosts[host_id])

    def update(self, host_id: int, host: HostRecord) -> HostRecord:
        with self._lock:
            current = self._hosts.get(host_id)
            if current is None:
                raise UpdateFailedError(host_id)

            owner = self._by_ip.get(host.ipv4_address)
            if owner is not None and owner != host_id:
                raise UpdateFailedError(host_id, reason=f"address {host.ipv4_address} belongs to record {owner}")

            updated = replace(host, id=host_id)
            del self._by_ip[current.ipv4_address]
            self._hosts[host_id] = updated
            self._by_ip[updated.ipv4_address] = host_id

        self.logger.debug(f"Updated host {updated.ipv4_address} (id {host_id})")
        return replace(updated)

    def all(self) -> List[HostRecord]:
        with self._lock:
            return [replace(self._hosts[host_id]) for host_id in sorted(self._hosts)]

    def delete(self, host_id: int) -> None:
        with self._lock:
            current = self._hosts.pop(host_id, None)
            if current is None:
                raise DeleteFailedError(host_id)
            del self._by_ip[current.ipv4_address]
