"""
Subnet enumeration.

Turns a seed address and a prefix length into the ordered addresses that share
the seed's network, starting at the seed and walking upward. Addresses below
the seed are never produced.
"""

import ipaddress
from typing import Union

from .data_models import AddressRange
from ..utils.error_handler import ParseError

IPV4_BITLEN = 32
_MAX_IPV4 = (1 << IPV4_BITLEN) - 1


def _netmask(prefix_length: int) -> int:
    return (_MAX_IPV4 << (IPV4_BITLEN - prefix_length)) & _MAX_IPV4


def _parse_seed(seed: Union[str, ipaddress.IPv4Address]) -> ipaddress.IPv4Address:
    if isinstance(seed, ipaddress.IPv4Address):
        return seed
    if not isinstance(seed, str):
        raise ParseError(f"Seed address must be a string, got {type(seed).__name__}", seed)
    try:
        return ipaddress.IPv4Address(seed.strip())
    except ipaddress.AddressValueError as e:
        raise ParseError(f"Invalid IPv4 address: {seed!r}", seed) from e


def _parse_prefix(prefix_length: Union[int, str]) -> int:
    if isinstance(prefix_length, bool):
        raise ParseError(f"Invalid prefix length: {prefix_length!r}", prefix_length)
    if isinstance(prefix_length, str):
        text = prefix_length.strip()
        # isdigit() alone also accepts superscripts and other non-ASCII digits
        if not (text.isascii() and text.isdigit()):
            raise ParseError(f"Invalid prefix length: {prefix_length!r}", prefix_length)
        prefix_length = int(text)
    if not isinstance(prefix_length, int):
        raise ParseError(f"Invalid prefix length: {prefix_length!r}", prefix_length)
    if not 0 <= prefix_length <= IPV4_BITLEN:
        raise ParseError(
            f"Prefix length must be between 0 and {IPV4_BITLEN}, got {prefix_length}",
            prefix_length
        )
    return prefix_length


def enumerate_subnet(seed: Union[str, ipaddress.IPv4Address],
                     prefix_length: Union[int, str]) -> AddressRange:
    """
    Enumerate the addresses from ``seed`` to the end of its network.

    Each successor is appended while masking it by ``prefix_length`` still
    yields the seed's network address. The walk stops at the first successor
    outside the network, after ``2 ** (32 - prefix_length)`` addresses, or at
    255.255.255.255, whichever comes first.

    Args:
        seed: IPv4 address to start from
        prefix_length: Prefix length of the network (0-32)

    Returns:
        AddressRange whose first address is the seed

    Raises:
        ParseError: If the seed is not an IPv4 literal or the prefix is out of range
    """
    seed_addr = _parse_seed(seed)
    prefix = _parse_prefix(prefix_length)

    mask = _netmask(prefix)
    network = int(seed_addr) & mask
    max_count = 1 << (IPV4_BITLEN - prefix)

    addresses = [str(seed_addr)]
    current = int(seed_addr)
    while len(addresses) < max_count and current < _MAX_IPV4:
        successor = current + 1
        if successor & mask != network:
            break
        addresses.append(str(ipaddress.IPv4Address(successor)))
        current = successor

    return AddressRange(seed=str(seed_addr), prefix_length=prefix, addresses=tuple(addresses))


def parse_cidr(cidr: str) -> AddressRange:
    """
    Enumerate a subnet given in ``address/prefix`` notation, e.g. ``192.168.50.1/24``.

    The address part is used as the seed, so it does not need to be the
    network address.

    Raises:
        ParseError: If the string is not of the form ``a.b.c.d/n``
    """
    if not isinstance(cidr, str) or "/" not in cidr:
        raise ParseError(f"Address must be given in CIDR notation: {cidr!r}", cidr, "parse_cidr")

    address, _, prefix = cidr.strip().partition("/")
    if "/" in prefix:
        raise ParseError(f"Malformed CIDR: {cidr!r}", cidr, "parse_cidr")
    return enumerate_subnet(address, prefix)


def network_of(address: str, prefix_length: int) -> str:
    """Return the network address of ``address`` masked by ``prefix_length``."""
    addr = _parse_seed(address)
    prefix = _parse_prefix(prefix_length)
    return str(ipaddress.IPv4Address(int(addr) & _netmask(prefix)))
