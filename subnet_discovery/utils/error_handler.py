"""
Error types for the Subnet Discovery Module.

Parse and configuration failures are raised to the immediate caller before a
sweep starts. Per-address probe and resolver failures never surface as
exceptions; only persistence faults may escalate, and only when the
reconciliation sink runs in fail-fast mode.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(Enum):
    """Enumeration for different types of errors."""
    PARSE_ERROR = "parse_error"
    CONFIGURATION_ERROR = "configuration_error"
    PERSISTENCE_ERROR = "persistence_error"


@dataclass
class ErrorContext:
    """
    Context information attached to a raised error.

    Attributes:
        error_type: Type of error that occurred
        operation: Operation that was being performed when error occurred
        component: Component/module where error occurred
        additional_info: Additional context information
    """
    error_type: ErrorType
    operation: str
    component: str
    additional_info: Dict[str, Any] = field(default_factory=dict)


class SubnetDiscoveryError(Exception):
    """Base exception class for Subnet Discovery Module."""

    def __init__(self, message: str, error_context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.error_context = error_context


class ParseError(SubnetDiscoveryError, ValueError):
    """Raised for a malformed seed address, prefix length or CIDR string."""

    def __init__(self, message: str, value: Any = None, operation: str = "parse"):
        context = ErrorContext(
            error_type=ErrorType.PARSE_ERROR,
            operation=operation,
            component="subnet",
            additional_info={"value": value},
        )
        super().__init__(message, context)
        self.value = value


class ConfigurationError(SubnetDiscoveryError):
    """Raised for invalid sweep configuration values."""

    def __init__(self, message: str, config_key: Optional[str] = None, config_value: Any = None):
        context = ErrorContext(
            error_type=ErrorType.CONFIGURATION_ERROR,
            operation="configure",
            component="config",
            additional_info={"config_key": config_key, "config_value": config_value},
        )
        super().__init__(message, context)


class PersistenceFailure(SubnetDiscoveryError):
    """
    Raised by a fail-fast reconciliation sink when storage fails for a result.

    Attributes:
        address: IPv4 address whose record could not be persisted
        original_error: The storage exception that caused the failure
    """

    def __init__(self, address: str, original_error: Exception):
        context = ErrorContext(
            error_type=ErrorType.PERSISTENCE_ERROR,
            operation="reconcile",
            component="reconciliation_sink",
            additional_info={"address": address},
        )
        super().__init__(
            f"Could not persist host {address}: {original_error}", context
        )
        self.address = address
        self.original_error = original_error
