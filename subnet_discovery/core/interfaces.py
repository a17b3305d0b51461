"""
Local interface discovery.

Lists the IPv4 addresses bound to this machine's interfaces so the CLI can
offer them as sweep targets.
"""

import ipaddress
import socket
from typing import List, Optional

import psutil

from .data_models import LocalInterface


def _mac_address(addresses) -> Optional[str]:
    for address in addresses:
        if address.family == psutil.AF_LINK and address.address:
            return address.address
    return None


def list_local_interfaces(include_loopback: bool = False) -> List[LocalInterface]:
    """
    Enumerate the IPv4 interfaces of the local host.

    Args:
        include_loopback: Also return addresses in 127.0.0.0/8

    Returns:
        LocalInterface entries sorted by interface name, then address
    """
    interfaces = []

    for interface_name, addresses in psutil.net_if_addrs().items():
        mac_address = _mac_address(addresses)

        for address in addresses:
            if address.family != socket.AF_INET or not address.netmask:
                continue

            try:
                network = ipaddress.IPv4Network(f"{address.address}/{address.netmask}", strict=False)
            except ValueError:
                continue

            if network.is_loopback and not include_loopback:
                continue

            interfaces.append(LocalInterface(
                host_address=address.address,
                network_address=str(network.network_address),
                prefix_length=network.prefixlen,
                netmask=str(network.netmask),
                interface_name=interface_name,
                mac_address=mac_address,
            ))

    return sorted(interfaces, key=lambda iface: (iface.interface_name, ipaddress.IPv4Address(iface.host_address)))


def find_interface(name: str, include_loopback: bool = False) -> Optional[LocalInterface]:
    """Return the first IPv4 interface called ``name``, if any."""
    for interface in list_local_interfaces(include_loopback=include_loopback):
        if interface.interface_name == name:
            return interface
    return None
