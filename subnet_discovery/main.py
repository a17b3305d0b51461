"""
Main entry point for the Subnet Discovery Module.

This module provides the command-line interface: target selection (explicit
CIDR, named interface or an interactive interface prompt), the sweep itself
and the reconciliation of found hosts into storage.
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import Callable, List, Optional

from host_storage import InMemoryHostRepository, MongoDBConfig, MongoHostRepository, StorageManagerError
from host_storage.repository import HostRepository

from . import __version__
from .config.config_loader import ConfigLoader, SweepConfig
from .core.data_models import AddressRange, LocalInterface, PortSet, ReconciliationReport
from .core.interfaces import list_local_interfaces
from .core.probe import probe_port, resolve_name
from .core.reconcile import ReconciliationSink
from .core.subnet import parse_cidr
from .core.sweep import SweepCoordinator
from .utils.error_handler import ConfigurationError, ParseError, PersistenceFailure
from .utils.logger import LogLevel, get_logger, set_log_level

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_TARGET = 2
EXIT_INTERRUPTED = 130


class SubnetDiscoveryApp:
    """
    Main application class for the Subnet Discovery Module.

    Handles target selection, storage setup and the sweep lifecycle.
    """

    def __init__(self, repository: Optional[HostRepository] = None,
                 interface_provider: Callable[[], List[LocalInterface]] = list_local_interfaces,
                 input_func: Callable[[str], str] = input,
                 probe=probe_port, resolver=resolve_name):
        """
        Initialize the application.

        Args:
            repository: Store to reconcile into; chosen from the arguments when omitted
            interface_provider: Source of local interfaces for the target prompt
            input_func: Reads the answer to the interactive target prompt
            probe: Single-port probe used by the sweep
            resolver: Reverse name lookup used by the sweep
        """
        self.logger = get_logger(__name__)
        self.repository = repository
        self._interface_provider = interface_provider
        self._input = input_func
        self._probe = probe
        self._resolver = resolver
        self._owned_repository: Optional[MongoHostRepository] = None

        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame) -> None:
        self.logger.warning("Received SIGTERM - stopping")
        raise KeyboardInterrupt

    def _cleanup(self) -> None:
        if self._owned_repository is not None:
            self._owned_repository.disconnect()
            self._owned_repository = None

    def _load_config(self, args: argparse.Namespace) -> SweepConfig:
        """
        Load the YAML sweep configuration and apply command line overrides.

        Raises:
            ConfigurationError: If the config directory or an override is invalid
        """
        if args.config_dir:
            config_path = Path(args.config_dir)
            if not config_path.is_dir():
                raise ConfigurationError(
                    f"Configuration directory does not exist: {args.config_dir}",
                    config_key="config_dir", config_value=args.config_dir
                )

        config = ConfigLoader(args.config_dir, logger=self.logger).load_sweep_config()

        return SweepConfig(
            ports=PortSet.parse(args.ports) if args.ports else config.ports,
            timeout=args.timeout if args.timeout is not None else config.timeout,
            max_workers=args.max_workers if args.max_workers is not None else config.max_workers,
        )

    def _show_interfaces(self, interfaces: List[LocalInterface]) -> None:
        widths = [4, 12, 18, 18, 17]
        self.logger.table_header(["#", "Interface", "Address", "Network", "MAC"], widths)
        for index, interface in enumerate(interfaces, start=1):
            self.logger.table_row(
                [index, interface.interface_name, interface.cidr,
                 f"{interface.network_address}/{interface.prefix_length}",
                 interface.mac_address or "-"],
                widths
            )

    def _prompt_for_target(self) -> str:
        """
        Ask the user which local network to sweep.

        Raises:
            ParseError: If no interface is available or the choice is invalid
        """
        interfaces = self._interface_provider()
        if not interfaces:
            raise ParseError("No IPv4 interfaces found; pass --target explicitly")

        self.logger.section("Select the network you wish to scan")
        self._show_interfaces(interfaces)

        answer = self._input(f"\nNetwork [1-{len(interfaces)}]: ").strip()
        if not answer.isdigit() or not 1 <= int(answer) <= len(interfaces):
            raise ParseError(f"Invalid selection: {answer!r}", value=answer, operation="select_interface")
        return interfaces[int(answer) - 1].cidr

    def _resolve_target(self, args: argparse.Namespace) -> AddressRange:
        """
        Turn the target arguments into an AddressRange.

        Raises:
            ParseError: If the target is malformed or the interface is unknown
        """
        if args.target:
            return parse_cidr(args.target)

        if args.interface:
            for interface in self._interface_provider():
                if interface.interface_name == args.interface:
                    return parse_cidr(interface.cidr)
            raise ParseError(f"No IPv4 interface named {args.interface!r}",
                             value=args.interface, operation="select_interface")

        return parse_cidr(self._prompt_for_target())

    def _open_repository(self, args: argparse.Namespace) -> HostRepository:
        if self.repository is not None:
            return self.repository

        if not args.store:
            self.logger.debug("Using in-memory host store")
            return InMemoryHostRepository()

        mongo_config = MongoDBConfig()
        repository = MongoHostRepository(
            mongo_config.get_connection_string(),
            mongo_config.database,
            client_options=mongo_config.client_options
        )
        repository.connect()
        self._owned_repository = repository
        repository.migrate()
        self.logger.success(f"Connected to MongoDB database '{mongo_config.database}'")
        return repository

    def _print_summary(self, report: ReconciliationReport, duration: float) -> None:
        self.logger.section("Sweep summary")
        self.logger.info(f"Addresses probed:  {report.received}")
        self.logger.info(f"Hosts found:       {report.persisted + len(report.failures)}")
        self.logger.info(f"Records created:   {report.created}")
        self.logger.info(f"Records updated:   {report.updated}")
        self.logger.info(f"Duration:          {duration:.2f}s")
        for address, error in report.failures:
            self.logger.error(f"Not persisted: {address}", error=error)

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the subnet discovery application.

        Args:
            args: Parsed command line arguments

        Returns:
            int: Exit code (0 success, 1 failure, 2 bad target, 130 interrupted)
        """
        try:
            if args.list_interfaces:
                interfaces = self._interface_provider()
                if not interfaces:
                    self.logger.warning("No IPv4 interfaces found")
                self._show_interfaces(interfaces)
                return EXIT_OK

            config = self._load_config(args)
            address_range = self._resolve_target(args)
            self.logger.sweep_info(address_range.cidr, len(address_range), list(config.ports))

            repository = self._open_repository(args)
            coordinator = SweepCoordinator(config, self.logger, probe=self._probe, resolver=self._resolver)
            sink = ReconciliationSink(
                repository,
                fail_fast=args.fail_fast,
                logger=self.logger,
                on_host=lambda result, record: self.logger.host_found(
                    result.address, result.resolved_name, result.open_ports
                )
            )

            self.logger.progress_start(f"Sweeping {address_range.cidr}")
            report = sink.consume(coordinator.sweep(address_range.addresses))
            coordinator.wait()
            self.logger.progress_end(f"Sweep of {address_range.cidr} complete")

            self._print_summary(report, coordinator.scan_duration)
            return EXIT_FAILURE if report.failures else EXIT_OK

        except (ParseError, ConfigurationError) as e:
            self.logger.error(str(e))
            return EXIT_BAD_TARGET
        except (PersistenceFailure, StorageManagerError) as e:
            self.logger.error("Storage failure", exception=e)
            return EXIT_FAILURE
        except (KeyboardInterrupt, EOFError):
            self.logger.warning("Sweep interrupted by user")
            return EXIT_INTERRUPTED
        finally:
            self._cleanup()


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="subnet_discovery",
        description="Subnet Discovery - find live hosts and open TCP ports on a local IPv4 subnet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m subnet_discovery                              # Choose a local network interactively
  python -m subnet_discovery --target 192.168.1.1/24      # Sweep an explicit subnet
  python -m subnet_discovery --interface eth0 --store     # Sweep eth0's subnet, persist to MongoDB
  python -m subnet_discovery --target 10.0.0.1/28 --ports 22,80,443
  python -m subnet_discovery --list-interfaces            # Show local IPv4 interfaces
        """
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--target", "-t",
        type=str,
        help="Seed address and prefix length, e.g. 192.168.1.1/24"
    )
    target.add_argument(
        "--interface", "-i",
        type=str,
        help="Sweep the subnet attached to this local interface"
    )
    target.add_argument(
        "--list-interfaces",
        action="store_true",
        help="List local IPv4 interfaces and exit"
    )

    parser.add_argument(
        "--ports", "-p",
        type=str,
        help="Comma-separated ports to probe, e.g. 22,80,443. Overrides sweep_config.yml"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Connect timeout per port in seconds (default 4)"
    )

    parser.add_argument(
        "--max-workers",
        type=int,
        help="Maximum number of addresses probed at once (default 128)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        help="Directory containing sweep_config.yml. Defaults to subnet_discovery/config/"
    )

    parser.add_argument(
        "--store",
        action="store_true",
        help="Persist found hosts to MongoDB (MONGODB_* environment variables)"
    )

    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Abort on the first host that cannot be persisted"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Subnet Discovery {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Subnet Discovery Module.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(LogLevel.DEBUG)

    app = SubnetDiscoveryApp()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
