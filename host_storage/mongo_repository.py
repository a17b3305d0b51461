"""
MongoDB host repository

Stores host records in a ``hosts`` collection keyed by an integer ``_id``.
Ids come from a ``counters`` collection so they stay positive int64 values,
and a unique index on ``ipv4_address`` keeps one record per address.

Transient connection errors are retried with exponential backoff and jitter;
every other driver error is wrapped in a StorageManagerError subclass.
"""

import random
import time
from typing import Any, Callable, Dict, List, Optional

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from .exceptions import (
    ConnectionError,
    DeleteFailedError,
    DuplicateHostError,
    HostNotFoundError,
    OperationError,
    RetryExhaustedError,
    StorageManagerError,
    UpdateFailedError,
    sanitize_connection_string,
)
from .logging_config import OperationLogger, get_logger
from .models import HostRecord
from .repository import HostRepository

HOSTS_COLLECTION = "hosts"
COUNTERS_COLLECTION = "counters"

# OperationFailure codes worth retrying
RETRYABLE_ERROR_CODES = {
    11600,  # InterruptedAtShutdown
    11602,  # InterruptedDueToReplStateChange
    10107,  # NotWritablePrimary
    13435,  # NotPrimaryNoSecondaryOk
    13436,  # NotPrimaryOrSecondary
    189,    # PrimarySteppedDown
    91,     # ShutdownInProgress
    7,      # HostNotFound
    6,      # HostUnreachable
    89,     # NetworkTimeout
    9001,   # SocketException
}


class MongoHostRepository(HostRepository):
    """
    HostRepository backed by MongoDB.

    Usage:
        with MongoHostRepository("mongodb://localhost:27017/", "subnet_discovery") as repo:
            repo.migrate()
            repo.create(record)
    """

    def __init__(self, connection_string: str = "mongodb://localhost:27017/",
                 database_name: str = "subnet_discovery",
                 client: Optional[MongoClient] = None,
                 client_options: Optional[Dict[str, Any]] = None,
                 max_retries: int = 3,
                 base_delay: float = 1.0):
        """
        Args:
            connection_string: MongoDB URI
            database_name: Database holding the hosts and counters collections
            client: Already constructed client to use instead of creating one
            client_options: Extra keyword arguments for ``MongoClient``
            max_retries: Attempts per operation on transient errors
            base_delay: First retry delay in seconds
        """
        self.connection_string = connection_string
        self.database_name = database_name
        self.logger = get_logger(f"{__name__}.MongoHostRepository")

        self.client: Optional[MongoClient] = client
        self.database = None
        self._owns_client = client is None
        self._client_options = client_options or {}

        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = 30.0
        self._backoff_factor = 2.0
        self._jitter_factor = 0.2

        self.logger.info(
            "MongoHostRepository initialized",
            extra={
                "database_name": self.database_name,
                "connection_string": sanitize_connection_string(self.connection_string)
            }
        )

    # Connection lifecycle

    def connect(self) -> None:
        """
        Create the client and verify the server answers a ping.

        Raises:
            ConnectionError: If the server cannot be reached after all retries
        """
        self.logger.info("Connecting to MongoDB")

        try:
            if self.client is None:
                self.client = MongoClient(
                    self.connection_string,
                    retryWrites=True,
                    retryReads=True,
                    **self._client_options
                )
                self._owns_client = True
            self.database = self.client[self.database_name]
            self._validate_connection_with_retry()
        except StorageManagerError as e:
            raise ConnectionError(
                "Failed to establish MongoDB connection",
                connection_string=self.connection_string,
                database_name=self.database_name,
                original_error=e.original_error or e
            )
        except PyMongoError as e:
            raise ConnectionError(
                "Failed to establish MongoDB connection",
                connection_string=self.connection_string,
                database_name=self.database_name,
                original_error=e
            )

        self.logger.info("Connected to MongoDB", extra={"database_name": self.database_name})

    def _validate_connection_with_retry(self) -> None:
        last_error = None

        for attempt in range(1, self._max_retries + 1):
            try:
                self.client.admin.command('ping')
                return
            except (ConnectionFailure, OperationFailure) as e:
                last_error = e
                self.logger.warning(
                    f"Connection validation attempt {attempt} failed",
                    extra={"attempt": attempt, "max_attempts": self._max_retries, "error": str(e)}
                )
                if attempt < self._max_retries:
                    time.sleep(self._calculate_retry_delay(attempt))

        raise RetryExhaustedError(
            "Connection validation failed after all retry attempts",
            attempts=self._max_retries,
            last_error=last_error,
            operation="connection_validation"
        )

    def _calculate_retry_delay(self, attempt: int) -> float:
        """
        Exponential backoff with +/-20% jitter, capped at the maximum delay.

        Args:
            attempt: Current attempt number (1-based)
        """
        delay = self._base_delay * (self._backoff_factor ** (attempt - 1))
        delay = min(delay, self._max_delay)
        jitter = delay * self._jitter_factor * (2 * random.random() - 1)
        return max(delay + jitter, 0.0)

    def disconnect(self) -> None:
        """Close the client if this repository created it. Safe to call repeatedly."""
        if self.client is not None and self._owns_client:
            try:
                self.client.close()
                self.logger.info("MongoDB connection closed")
            except PyMongoError as e:
                self.logger.warning(f"Error during disconnect: {e}")
            self.client = None
        self.database = None

    def _ensure_connected(self) -> None:
        if self.client is None or self.database is None:
            raise ConnectionError(
                "Not connected to MongoDB. Call connect() first.",
                connection_string=self.connection_string,
                database_name=self.database_name
            )

    def __enter__(self) -> "MongoHostRepository":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    @property
    def hosts(self):
        return self.database[HOSTS_COLLECTION]

    @property
    def counters(self):
        return self.database[COUNTERS_COLLECTION]

    # Retry wrapper

    def _execute_with_retry(self, operation_func: Callable[[], Any], operation_name: str) -> Any:
        """
        Run ``operation_func`` and retry it on transient errors.

        StorageManagerError raised by the operation itself passes through
        unchanged so callers can branch on not-found and duplicate outcomes.

        Raises:
            RetryExhaustedError: If every attempt failed with a transient error
            OperationError: If the driver reported a non-retryable error
        """
        self._ensure_connected()
        last_error = None

        for attempt in range(1, self._max_retries + 1):
            try:
                result = operation_func()
                if attempt > 1:
                    self.logger.info(f"Operation {operation_name} succeeded after {attempt} attempts")
                return result

            except StorageManagerError:
                raise

            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                last_error = e
                self.logger.warning(
                    f"Connection error during {operation_name} (attempt {attempt})",
                    extra={"attempt": attempt, "max_attempts": self._max_retries,
                           "error": str(e), "operation": operation_name}
                )

            except OperationFailure as e:
                if not self._is_retryable_operation_error(e):
                    self.logger.error(
                        f"Non-retryable operation error during {operation_name}",
                        extra={"error": str(e), "operation": operation_name}
                    )
                    raise OperationError(
                        f"Operation {operation_name} failed with non-retryable error",
                        operation=operation_name,
                        collection=HOSTS_COLLECTION,
                        original_error=e
                    )
                last_error = e
                self.logger.warning(
                    f"Retryable operation error during {operation_name} (attempt {attempt})",
                    extra={"attempt": attempt, "error": str(e), "operation": operation_name}
                )

            except PyMongoError as e:
                self.logger.error(
                    f"PyMongo error during {operation_name}",
                    extra={"error": str(e), "operation": operation_name}
                )
                raise OperationError(
                    f"Operation {operation_name} failed with PyMongo error",
                    operation=operation_name,
                    collection=HOSTS_COLLECTION,
                    original_error=e
                )

            if attempt < self._max_retries:
                delay = self._calculate_retry_delay(attempt)
                self.logger.debug(f"Retrying {operation_name} in {delay:.2f} seconds")
                time.sleep(delay)

        self.logger.error(
            f"All retry attempts exhausted for {operation_name}",
            extra={"attempts": self._max_retries, "last_error": str(last_error)}
        )
        raise RetryExhaustedError(
            f"Operation {operation_name} failed after all retry attempts",
            attempts=self._max_retries,
            last_error=last_error,
            operation=operation_name
        )

    @staticmethod
    def _is_retryable_operation_error(error: OperationFailure) -> bool:
        if isinstance(error, DuplicateKeyError):
            return False
        if getattr(error, 'code', None) in RETRYABLE_ERROR_CODES:
            return True

        error_msg = str(error).lower()
        retryable_patterns = ('not master', 'not primary', 'connection', 'timeout',
                              'network', 'socket', 'interrupted')
        return any(pattern in error_msg for pattern in retryable_patterns)

    # HostRepository operations

    def migrate(self) -> None:
        self._ensure_connected()
        with OperationLogger(self.logger, "migrate", collection=HOSTS_COLLECTION):
            self._execute_with_retry(
                lambda: self.hosts.create_index(
                    [("ipv4_address", ASCENDING)], unique=True, name="ipv4_address_unique"
                ),
                "create_index"
            )

    def _next_id(self) -> int:
        counter = self.counters.find_one_and_update(
            {"_id": HOSTS_COLLECTION},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return int(counter["seq"])

    def create(self, host: HostRecord) -> HostRecord:
        def _create() -> HostRecord:
            stored = host.with_id(self._next_id())
            try:
                self.hosts.insert_one(stored.to_mongo_dict())
            except DuplicateKeyError as e:
                raise DuplicateHostError(host.ipv4_address, original_error=e)
            return stored

        stored = self._execute_with_retry(_create, "create_host")
        self.logger.debug(f"Created host {stored.ipv4_address} with id {stored.id}")
        return stored

    def get_by_ip(self, ip: str) -> HostRecord:
        def _get() -> HostRecord:
            doc = self.hosts.find_one({"ipv4_address": ip})
            if doc is None:
                raise HostNotFoundError(ipv4_address=ip)
            return HostRecord.from_mongo_dict(doc)

        return self._execute_with_retry(_get, "get_host_by_ip")

    def update(self, host_id: int, host: HostRecord) -> HostRecord:
        if isinstance(host_id, bool) or not isinstance(host_id, int) or host_id <= 0:
            raise UpdateFailedError(host_id, reason="id must be a positive integer")

        fields = host.to_mongo_dict()
        fields.pop("_id", None)

        def _update() -> HostRecord:
            try:
                result = self.hosts.update_one({"_id": host_id}, {"$set": fields})
            except DuplicateKeyError as e:
                raise UpdateFailedError(
                    host_id,
                    reason=f"address {host.ipv4_address} belongs to another record",
                    original_error=e
                )
            if result.matched_count == 0:
                raise UpdateFailedError(host_id)
            return host.with_id(host_id)

        updated = self._execute_with_retry(_update, "update_host")
        self.logger.debug(f"Updated host {updated.ipv4_address} (id {host_id})")
        return updated

    def all(self) -> List[HostRecord]:
        return self._execute_with_retry(
            lambda: [HostRecord.from_mongo_dict(doc)
                     for doc in self.hosts.find({}).sort("_id", ASCENDING)],
            "list_hosts"
        )

    def delete(self, host_id: int) -> None:
        def _delete() -> None:
            result = self.hosts.delete_one({"_id": host_id})
            if result.deleted_count == 0:
                raise DeleteFailedError(host_id)

        self._execute_with_retry(_delete, "delete_host")
