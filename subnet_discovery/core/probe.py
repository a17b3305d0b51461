"""
TCP port probing and reverse name resolution for a single address.
"""

import socket
from typing import Callable, Iterable, Tuple

# Fixed per-dial timeout in seconds
DEFAULT_PROBE_TIMEOUT = 4.0

# Name recorded when the system resolver has no answer for an address
UNRESOLVED_NAME = "not found with default resolver"


def probe_port(address: str, port: int, timeout: float = DEFAULT_PROBE_TIMEOUT) -> bool:
    """
    Attempt one TCP connection to ``address:port``.

    The connection is closed as soon as it is established; nothing is sent or
    read. Refusals, timeouts, unreachable hosts and any other socket error are
    all reported the same way, as a closed port.

    Returns:
        True if the connection was established, False otherwise
    """
    try:
        with socket.create_connection((address, port), timeout=timeout):
            return True
    except OSError:
        return False


def port_walk(address: str, ports: Iterable[int],
              timeout: float = DEFAULT_PROBE_TIMEOUT,
              probe: Callable[[str, int, float], bool] = probe_port) -> Tuple[int, ...]:
    """
    Probe ``ports`` on ``address`` one after another.

    Args:
        address: IPv4 address to probe
        ports: Ports in probe order
        timeout: Per-dial timeout in seconds
        probe: Single-port probe function

    Returns:
        The open ports, in the order they were given
    """
    return tuple(port for port in ports if probe(address, port, timeout))


def resolve_name(address: str) -> str:
    """
    Reverse-resolve ``address`` with the system resolver.

    Returns:
        The primary name followed by any aliases, comma separated, or
        UNRESOLVED_NAME if the lookup fails
    """
    try:
        hostname, aliases, _ = socket.gethostbyaddr(address)
    except (OSError, UnicodeError):
        return UNRESOLVED_NAME
    return ", ".join([hostname, *aliases])
