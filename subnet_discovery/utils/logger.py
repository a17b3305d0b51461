"""
Colored console logging for subnet discovery runs.

This module provides a Logger class that writes timestamped, color-coded
messages with colorama, plus a few helpers used by the CLI to render
section headers, sweep progress and discovered hosts.
"""

import sys
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence
from colorama import Fore, Style, init

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class LogLevel(Enum):
    """Enumeration for different log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


_LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
}


class Logger:
    """
    Console logger with level filtering and colored output.

    Every message may carry keyword context which is rendered as a dimmed
    ``key=value`` suffix, e.g. ``logger.info("Probe finished", host=ip)``.
    """

    LEVEL_COLORS = {
        LogLevel.DEBUG: Fore.CYAN,
        LogLevel.INFO: Fore.GREEN,
        LogLevel.WARNING: Fore.YELLOW,
        LogLevel.ERROR: Fore.RED,
    }

    def __init__(
        self, name: str = "SubnetDiscovery", min_level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize the Logger.

        Args:
            name: Name of the logger (default: "SubnetDiscovery")
            min_level: Minimum log level to display (default: INFO)
        """
        self.name = name
        self.min_level = min_level
        self._progress_active = False

    def _should_log(self, level: LogLevel) -> bool:
        return _LEVEL_ORDER[level] >= _LEVEL_ORDER[self.min_level]

    @staticmethod
    def _timestamp() -> str:
        return datetime.now().strftime("%H:%M:%S")

    @staticmethod
    def _details(kwargs: dict) -> str:
        if not kwargs:
            return ""
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {Style.DIM}({details}){Style.RESET_ALL}"

    def _log(self, level: LogLevel, message: str, **kwargs) -> None:
        """
        Format and print one message if it passes the level filter.

        Errors go to stderr, everything else to stdout.
        """
        if not self._should_log(level):
            return

        color = self.LEVEL_COLORS[level]
        line = (
            f"{Style.DIM}[{self._timestamp()}]{Style.RESET_ALL} "
            f"{color}{level.value:<7}{Style.RESET_ALL} "
            f"{message}{self._details(kwargs)}"
        )
        print(line, file=sys.stderr if level == LogLevel.ERROR else sys.stdout)

    def debug(self, message: str, **kwargs) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(
        self, message: str, exception: Optional[Exception] = None, **kwargs
    ) -> None:
        """
        Log an error message.

        Args:
            message: Error message
            exception: Optional exception object for additional context
            **kwargs: Additional context information
        """
        if exception:
            kwargs["exception"] = f"{type(exception).__name__}: {exception}"
        self._log(LogLevel.ERROR, message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        """Log a success message (INFO level, highlighted)."""
        if not self._should_log(LogLevel.INFO):
            return

        print(
            f"{Style.DIM}[{self._timestamp()}]{Style.RESET_ALL} "
            f"{Fore.GREEN}SUCCESS{Style.RESET_ALL} "
            f"{Style.BRIGHT}{message}{Style.RESET_ALL}{self._details(kwargs)}"
        )

    def section(self, title: str) -> None:
        """Print a section banner."""
        if not self._should_log(LogLevel.INFO):
            return

        separator = "=" * 60
        print(f"\n{Fore.BLUE}{Style.BRIGHT}{separator}")
        print(f"  {title.upper()}")
        print(f"{separator}{Style.RESET_ALL}\n")

    def progress_start(self, message: str) -> None:
        if not self._should_log(LogLevel.INFO):
            return

        print(
            f"{Style.DIM}[{self._timestamp()}]{Style.RESET_ALL} "
            f"{Fore.BLUE}PROGRESS{Style.RESET_ALL} {message}...",
            flush=True,
        )
        self._progress_active = True

    def progress_end(self, final_message: Optional[str] = None) -> None:
        if not self._progress_active:
            return

        self._progress_active = False
        if final_message:
            self.success(final_message)

    def table_header(self, headers: Sequence[str], widths: Sequence[int]) -> None:
        if not self._should_log(LogLevel.INFO):
            return

        header_row = " | ".join(
            f"{header:<{width}}" for header, width in zip(headers, widths)
        )
        print(f"{Style.BRIGHT}{header_row}{Style.RESET_ALL}")
        print(f"{Style.DIM}{'-+-'.join('-' * width for width in widths)}{Style.RESET_ALL}")

    def table_row(self, values: Sequence, widths: Sequence[int]) -> None:
        if not self._should_log(LogLevel.INFO):
            return

        print(" | ".join(f"{str(value):<{width}}" for value, width in zip(values, widths)))

    def sweep_info(self, cidr: str, address_count: int, ports: Sequence[int]) -> None:
        """
        Display the sweep target before probing starts.

        Args:
            cidr: Network being swept in CIDR notation
            address_count: Number of addresses that will be probed
            ports: Ports probed on every address
        """
        if not self._should_log(LogLevel.INFO):
            return

        print(f"\n{Fore.CYAN}{Style.BRIGHT}SWEEP TARGET{Style.RESET_ALL}")
        print(f"  Network:    {Style.BRIGHT}{cidr}{Style.RESET_ALL}")
        print(f"  Addresses:  {Style.BRIGHT}{address_count}{Style.RESET_ALL}")
        print(f"  Ports:      {Style.BRIGHT}{', '.join(map(str, ports))}{Style.RESET_ALL}\n")

    def host_found(self, address: str, fqdn: str, ports: Sequence[int]) -> None:
        """Print the block shown for every host with at least one open port."""
        if not self._should_log(LogLevel.INFO):
            return

        print(f"{Fore.MAGENTA}{Style.BRIGHT} |-|-|-| :::: HOST FOUND :::: |-|-|-|{Style.RESET_ALL}")
        print(f"  IPv4 Address:               {address}")
        print(f"  Fully Qualified Domain Name: {fqdn}")
        print(f"  Listening Ports:            {', '.join(map(str, ports))}")


# Global logger instance
logger = Logger()


def set_log_level(level: LogLevel) -> None:
    """
    Set the global log level.

    Args:
        level: Minimum log level to display
    """
    logger.min_level = level


def get_logger(name: str = "SubnetDiscovery") -> Logger:
    """
    Get a logger instance with the specified name.

    The new instance shares the current global minimum level.
    """
    return Logger(name, logger.min_level)
