"""
Utility functions and helper classes.
"""

from .logger import Logger, LogLevel, logger, set_log_level, get_logger
from .error_handler import (
    ErrorContext, ErrorType, SubnetDiscoveryError, ParseError,
    ConfigurationError, PersistenceFailure
)

__all__ = [
    'Logger',
    'LogLevel',
    'logger',
    'set_log_level',
    'get_logger',
    'ErrorContext',
    'ErrorType',
    'SubnetDiscoveryError',
    'ParseError',
    'ConfigurationError',
    'PersistenceFailure'
]
