"""
Core data models for the Subnet Discovery Module.

This module defines the immutable values that flow through a sweep: the
enumerated address range, the port set probed on every address, the
per-address scan result and the reconciliation report.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ..utils.error_handler import ConfigurationError


# Ports probed when no explicit port set is configured
DEFAULT_PORTS: Tuple[int, ...] = (22, 80, 443, 8080, 4379, 445, 53, 153, 27017)


@dataclass(frozen=True)
class PortSet:
    """
    Ordered, duplicate-free sequence of TCP ports.

    A PortSet is shared read-only by every task of a sweep, so it is frozen
    and validated once at construction.

    Attributes:
        ports: Port numbers in probe order
    """
    ports: Tuple[int, ...] = DEFAULT_PORTS

    def __post_init__(self):
        ports = tuple(self.ports)
        seen = set()
        for port in ports:
            if isinstance(port, bool) or not isinstance(port, int):
                raise ConfigurationError(
                    f"Port must be an integer, got {port!r}",
                    config_key="ports", config_value=port
                )
            if not 1 <= port <= 65535:
                raise ConfigurationError(
                    f"Port out of range 1-65535: {port}",
                    config_key="ports", config_value=port
                )
            if port in seen:
                raise ConfigurationError(
                    f"Duplicate port in port set: {port}",
                    config_key="ports", config_value=port
                )
            seen.add(port)
        object.__setattr__(self, "ports", ports)

    @classmethod
    def from_iterable(cls, ports: Iterable[int]) -> "PortSet":
        return cls(tuple(ports))

    @classmethod
    def parse(cls, text: str) -> "PortSet":
        """
        Build a PortSet from a comma-separated string such as ``"22,80,443"``.

        Raises:
            ConfigurationError: If an entry is not a valid port number
        """
        ports = []
        for chunk in text.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            try:
                ports.append(int(chunk))
            except ValueError:
                raise ConfigurationError(
                    f"Invalid port value: {chunk!r}", config_key="ports", config_value=chunk
                ) from None
        return cls(tuple(ports))

    def __iter__(self):
        return iter(self.ports)

    def __len__(self) -> int:
        return len(self.ports)


@dataclass(frozen=True)
class AddressRange:
    """
    The addresses of one subnet, starting at the seed and walking forward.

    Attributes:
        seed: Address the enumeration started from (always ``addresses[0]``)
        prefix_length: Network prefix length (0-32)
        addresses: Ordered addresses that share the seed's network
    """
    seed: str
    prefix_length: int
    addresses: Tuple[str, ...] = ()

    @property
    def network(self) -> ipaddress.IPv4Network:
        return ipaddress.IPv4Network(f"{self.seed}/{self.prefix_length}", strict=False)

    @property
    def cidr(self) -> str:
        return f"{self.seed}/{self.prefix_length}"

    def __len__(self) -> int:
        return len(self.addresses)

    def __iter__(self):
        return iter(self.addresses)


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of probing one address.

    Attributes:
        address: IPv4 address that was probed
        resolved_name: Reverse lookup result, or a placeholder when it failed
        open_ports: Open ports in the order they were probed
    """
    address: str
    resolved_name: str
    open_ports: Tuple[int, ...] = ()

    @property
    def has_open_ports(self) -> bool:
        return bool(self.open_ports)

    @property
    def ports_csv(self) -> str:
        return ",".join(str(port) for port in self.open_ports)


@dataclass
class ReconciliationReport:
    """
    Summary of one reconciliation pass over a result channel.

    Attributes:
        received: Results read from the channel
        skipped: Results dropped because no port was open
        created: Host records created
        updated: Host records updated in place
        failures: ``(address, error message)`` pairs for results that could not be persisted
    """
    received: int = 0
    skipped: int = 0
    created: int = 0
    updated: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def persisted(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "skipped": self.skipped,
            "created": self.created,
            "updated": self.updated,
            "failures": [
                {"address": address, "error": error} for address, error in self.failures
            ],
        }


@dataclass(frozen=True)
class LocalInterface:
    """
    An IPv4 address bound to one of the scanning host's interfaces.

    Attributes:
        host_address: Address assigned to the interface
        network_address: Network address of the attached subnet
        prefix_length: Prefix length of the attached subnet
        netmask: Dotted decimal netmask
        interface_name: Name of the interface (e.g. ``eth0``)
        mac_address: Hardware address of the interface, if known
    """
    host_address: str
    network_address: str
    prefix_length: int
    netmask: str
    interface_name: str
    mac_address: Optional[str] = None

    @property
    def cidr(self) -> str:
        """Seed CIDR for a sweep of this interface's subnet."""
        return f"{self.host_address}/{self.prefix_length}"
