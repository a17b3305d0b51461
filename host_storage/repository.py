"""
Host repository interface

Defines the operations every host store implements. The discovery core only
relies on get_by_ip, create and update; the remaining operations serve the
listing and administrative callers.
"""

from abc import ABC, abstractmethod
from typing import List

from .models import HostRecord


class HostRepository(ABC):
    """
    Abstract base class for host record storage.

    Implementations must keep ``ipv4_address`` unique and must assign a
    positive integer id on create.
    """

    @abstractmethod
    def migrate(self) -> None:
        """
        Prepare the underlying store (collections, unique indexes).
        Safe to call more than once.
        """

    @abstractmethod
    def create(self, host: HostRecord) -> HostRecord:
        """
        Store a new host record.

        Args:
            host: Record to store; its id is ignored

        Returns:
            The stored record with its assigned id

        Raises:
            DuplicateHostError: If a record with the same address exists
        """

    @abstractmethod
    def get_by_ip(self, ip: str) -> HostRecord:
        """
        Look up the record for an IPv4 address.

        Raises:
            HostNotFoundError: If no record has this address
        """

    @abstractmethod
    def update(self, host_id: int, host: HostRecord) -> HostRecord:
        """
        Replace fqdn, address and ports of the record with ``host_id``.

        Returns:
            The updated record, carrying ``host_id``

        Raises:
            UpdateFailedError: If no record has this id
        """

    @abstractmethod
    def all(self) -> List[HostRecord]:
        """Return every stored record, ordered by id."""

    @abstractmethod
    def delete(self, host_id: int) -> None:
        """
        Remove the record with ``host_id``.

        Raises:
            DeleteFailedError: If no record has this id
        """
