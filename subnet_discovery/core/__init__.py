"""
Core discovery components: subnet enumeration, port probing and the result channel.

The sweep coordinator and reconciliation sink live in ``core.sweep`` and
``core.reconcile``.
"""

from .data_models import (
    DEFAULT_PORTS, PortSet, AddressRange, ScanResult, ReconciliationReport, LocalInterface
)
from .subnet import enumerate_subnet, parse_cidr, network_of
from .probe import probe_port, port_walk, resolve_name, DEFAULT_PROBE_TIMEOUT, UNRESOLVED_NAME
from .channel import ResultChannel, ChannelClosedError

__all__ = [
    'DEFAULT_PORTS',
    'PortSet',
    'AddressRange',
    'ScanResult',
    'ReconciliationReport',
    'LocalInterface',
    'enumerate_subnet',
    'parse_cidr',
    'network_of',
    'probe_port',
    'port_walk',
    'resolve_name',
    'DEFAULT_PROBE_TIMEOUT',
    'UNRESOLVED_NAME',
    'ResultChannel',
    'ChannelClosedError'
]
