"""
Host Storage Layer

Persistence for discovered hosts: one record per IPv4 address with its
resolved name and open ports. Ships a MongoDB repository and an in-memory
repository behind a common interface.
"""

__version__ = "1.0.0"

from .repository import HostRepository
from .memory_repository import InMemoryHostRepository
from .mongo_repository import MongoHostRepository
from .mongodb_config import MongoDBConfig
from .models import HostRecord, create_host_record
from .exceptions import (
    StorageManagerError, HostNotFoundError, DuplicateHostError, UpdateFailedError,
    DeleteFailedError, ConnectionError, ValidationError, OperationError,
    RetryExhaustedError, ConfigurationError
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "HostRepository",
    "InMemoryHostRepository",
    "MongoHostRepository",
    "MongoDBConfig",
    "HostRecord",
    "create_host_record",
    "StorageManagerError",
    "HostNotFoundError",
    "DuplicateHostError",
    "UpdateFailedError",
    "DeleteFailedError",
    "ConnectionError",
    "ValidationError",
    "OperationError",
    "RetryExhaustedError",
    "ConfigurationError",
    "setup_logging",
    "get_logger"
]
