"""
Data models for the host storage layer

This module defines HostRecord, the persisted form of a host that was seen
with at least one listening TCP port.
"""

import ipaddress
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import ValidationError


@dataclass
class HostRecord:
    """
    A discovered host, keyed by its IPv4 address.

    Attributes:
        fqdn: Name(s) returned by the reverse lookup, or its placeholder
        ipv4_address: Dotted quad address; unique across all records
        ports_csv: Open ports as a comma-joined string in scan order, e.g. ``"22,80"``
        id: Storage-assigned integer id, None until the record is created
    """
    fqdn: str
    ipv4_address: str
    ports_csv: str = ""
    id: Optional[int] = None

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """
        Validate the record fields.

        Raises:
            ValidationError: If any field is invalid
        """
        if not isinstance(self.fqdn, str):
            raise ValidationError(
                "fqdn must be a string",
                field_name="fqdn", field_value=self.fqdn, validation_rule="str"
            )

        try:
            ipaddress.IPv4Address(self.ipv4_address)
        except (ipaddress.AddressValueError, TypeError) as e:
            raise ValidationError(
                "ipv4_address must be a valid IPv4 address",
                field_name="ipv4_address", field_value=self.ipv4_address,
                validation_rule="IPv4 dotted quad", original_error=e
            )

        if not isinstance(self.ports_csv, str):
            raise ValidationError(
                "ports_csv must be a string",
                field_name="ports_csv", field_value=self.ports_csv, validation_rule="str"
            )

        if self.id is not None and (isinstance(self.id, bool) or not isinstance(self.id, int)):
            raise ValidationError(
                "id must be an integer",
                field_name="id", field_value=self.id, validation_rule="int64"
            )

    @property
    def ports(self) -> List[int]:
        """
        Open ports parsed back from ``ports_csv``.

        Entries that are not decimal port numbers, e.g. from a document
        edited outside this package, are skipped.
        """
        ports = []
        for entry in self.ports_csv.split(","):
            entry = entry.strip()
            if entry.isascii() and entry.isdigit():
                ports.append(int(entry))
        return ports

    def with_id(self, host_id: int) -> "HostRecord":
        return replace(self, id=host_id)

    def to_mongo_dict(self) -> Dict[str, Any]:
        """
        Convert the record to its MongoDB document form.

        Returns:
            Dictionary using ``_id`` for the integer id when one is set
        """
        doc: Dict[str, Any] = {
            "fqdn": self.fqdn,
            "ipv4_address": self.ipv4_address,
            "listening_port": self.ports_csv,
        }
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    @classmethod
    def from_mongo_dict(cls, doc: Dict[str, Any]) -> "HostRecord":
        return cls(
            fqdn=doc.get("fqdn", ""),
            ipv4_address=doc["ipv4_address"],
            ports_csv=doc.get("listening_port", ""),
            id=doc.get("_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fqdn": self.fqdn,
            "ipv4_address": self.ipv4_address,
            "ports": self.ports,
            "ports_csv": self.ports_csv,
        }


def create_host_record(fqdn: str, ipv4_address: str, ports: Iterable[int],
                       host_id: Optional[int] = None) -> HostRecord:
    """
    Build a HostRecord from a list of open ports.

    Args:
        fqdn: Resolved host name
        ipv4_address: Host address
        ports: Open ports in scan order
        host_id: Existing id, if the record is already stored

    Returns:
        HostRecord with ``ports_csv`` joined in the given order
    """
    return HostRecord(
        fqdn=fqdn,
        ipv4_address=ipv4_address,
        ports_csv=",".join(str(port) for port in ports),
        id=host_id,
    )
