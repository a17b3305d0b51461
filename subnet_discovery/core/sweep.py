"""
Sweep coordinator for Subnet Discovery Module.

This module fans out one probe task per address onto a bounded thread pool.
Every task walks the configured ports, reverse-resolves the address and
publishes exactly one ScanResult on a shared ResultChannel. A dispatcher
thread waits for every task and then closes the channel, so a consumer that
drains the channel sees each address exactly once, in completion order.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .channel import ResultChannel
from .data_models import PortSet, ScanResult
from .probe import UNRESOLVED_NAME, port_walk, probe_port, resolve_name
from ..config.config_loader import SweepConfig
from ..utils.logger import Logger

# Submitted but unfinished tasks allowed per worker thread, running ones included
PENDING_PER_WORKER = 2


class SweepCoordinator:
    """
    Runs port walks across a set of addresses concurrently.

    The number of addresses in flight at once is capped by
    ``config.max_workers``. There is no cancellation: once started, a sweep
    runs until every address has been probed.
    """

    def __init__(self, config: Optional[SweepConfig] = None, logger: Optional[Logger] = None,
                 probe: Callable[[str, int, float], bool] = probe_port,
                 resolver: Callable[[str], str] = resolve_name):
        """
        Initialize the sweep coordinator.

        Args:
            config: Sweep configuration (ports, timeout, worker bound)
            logger: Logger instance for outputting sweep progress and errors
            probe: Single-port probe function
            resolver: Reverse name lookup function
        """
        self.config = config or SweepConfig()
        self.logger = logger
        self._probe = probe
        self._resolver = resolver
        self._dispatcher: Optional[threading.Thread] = None
        self.scan_start_time: Optional[datetime] = None
        self.scan_duration: float = 0.0

    def _log_info(self, message: str) -> None:
        if self.logger:
            self.logger.info(message)

    def _log_debug(self, message: str) -> None:
        if self.logger:
            self.logger.debug(message)

    def _log_error(self, message: str, exception: Optional[Exception] = None) -> None:
        if self.logger:
            self.logger.error(message, exception=exception)

    def sweep(self, addresses: Iterable[str],
              ports: Optional[Union[PortSet, Sequence[int]]] = None) -> ResultChannel:
        """
        Start a sweep and return its result channel immediately.

        Args:
            addresses: Addresses to probe, typically ``AddressRange.addresses``
            ports: Ports to probe on each address; defaults to ``config.ports``

        Returns:
            ResultChannel that yields one ScanResult per address and is then closed
        """
        targets = tuple(addresses)
        port_set = self._resolve_ports(ports)
        channel: ResultChannel = ResultChannel()

        self._dispatcher = threading.Thread(
            target=self._dispatch,
            args=(targets, port_set, channel),
            name="sweep-dispatcher",
            daemon=True,
        )
        self._dispatcher.start()
        return channel

    def run(self, addresses: Iterable[str],
            ports: Optional[Union[PortSet, Sequence[int]]] = None) -> List[ScanResult]:
        """Run a sweep to completion and return every result in arrival order."""
        return list(self.sweep(addresses, ports))

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the dispatcher of the latest sweep to finish.

        Returns:
            True if no sweep is running any more
        """
        if self._dispatcher is None:
            return True
        self._dispatcher.join(timeout)
        return not self._dispatcher.is_alive()

    def _resolve_ports(self, ports: Optional[Union[PortSet, Sequence[int]]]) -> PortSet:
        if ports is None:
            return self.config.ports
        if isinstance(ports, PortSet):
            return ports
        return PortSet.from_iterable(ports)

    def _dispatch(self, targets: Sequence[str], ports: PortSet, channel: ResultChannel) -> None:
        """Submit one task per address, wait for all of them, then close the channel."""
        self.scan_start_time = datetime.now()
        self._log_info(
            f"Sweeping {len(targets)} addresses on {len(ports)} ports "
            f"with up to {self.config.max_workers} workers"
        )

        try:
            if targets:
                workers = min(self.config.max_workers, len(targets))
                window = threading.BoundedSemaphore(workers * PENDING_PER_WORKER)
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sweep") as executor:
                    for address in targets:
                        window.acquire()
                        try:
                            future = executor.submit(self._scan_address, address, ports, channel)
                        except Exception:
                            window.release()
                            raise
                        future.add_done_callback(lambda _: window.release())
        except Exception as e:
            self._log_error("Sweep dispatcher failed", exception=e)
        finally:
            channel.close()
            self.scan_duration = (datetime.now() - self.scan_start_time).total_seconds()
            self._log_info(
                f"Sweep finished: {channel.published} results in {self.scan_duration:.2f} seconds"
            )

    def _scan_address(self, address: str, ports: PortSet, channel: ResultChannel) -> None:
        """
        Probe one address and publish its result.

        The reverse lookup runs even when no port is open. A failure in either
        step still publishes a result so the channel count stays exact.
        """
        open_ports = ()
        resolved_name = UNRESOLVED_NAME

        try:
            open_ports = port_walk(address, ports, self.config.timeout, self._probe)
        except Exception as e:
            self._log_error(f"Port walk failed for {address}", exception=e)

        try:
            resolved_name = self._resolver(address)
        except Exception as e:
            self._log_error(f"Reverse lookup failed for {address}", exception=e)

        self._log_debug(f"{address}: open ports {list(open_ports)}")
        channel.publish(ScanResult(address=address, resolved_name=resolved_name, open_ports=open_ports))


def net_sweep(addresses: Iterable[str],
              ports: Optional[Union[PortSet, Sequence[int]]] = None,
              config: Optional[SweepConfig] = None,
              logger: Optional[Logger] = None) -> ResultChannel:
    """
    Sweep ``addresses`` with a fresh coordinator.

    Returns:
        ResultChannel to drain until it closes
    """
    return SweepCoordinator(config, logger).sweep(addresses, ports)
