"""
Reconciliation of sweep results into host storage.

The sink is the single consumer of a sweep's ResultChannel. Results without
open ports are dropped; every other result becomes a create or an update of
the HostRecord keyed by its address, so re-scanning a host keeps its id.
"""

from typing import Callable, Iterable, Optional

from host_storage.exceptions import DuplicateHostError, HostNotFoundError, StorageManagerError
from host_storage.models import HostRecord, create_host_record
from host_storage.repository import HostRepository

from .data_models import ReconciliationReport, ScanResult
from ..utils.error_handler import PersistenceFailure
from ..utils.logger import Logger

HostCallback = Callable[[ScanResult, HostRecord], None]


class ReconciliationSink:
    """
    Persists scan results through a HostRepository.

    By default a storage failure for one result is logged, recorded in the
    report and skipped. With ``fail_fast=True`` the first failure is raised
    as PersistenceFailure instead.
    """

    def __init__(self, repository: HostRepository, fail_fast: bool = False,
                 logger: Optional[Logger] = None, on_host: Optional[HostCallback] = None):
        """
        Args:
            repository: Store used for lookups, creates and updates
            fail_fast: Raise on the first persistence failure
            logger: Logger for per-result outcomes
            on_host: Called with the result and stored record for every persisted host
        """
        self.repository = repository
        self.fail_fast = fail_fast
        self.logger = logger
        self.on_host = on_host

    def consume(self, channel: Iterable[ScanResult]) -> ReconciliationReport:
        """
        Drain ``channel`` until it closes and persist every result with open ports.

        Returns:
            ReconciliationReport for the drained results

        Raises:
            PersistenceFailure: On the first storage failure when ``fail_fast`` is set
        """
        report = ReconciliationReport()

        for result in channel:
            report.received += 1

            if not result.has_open_ports:
                report.skipped += 1
                continue

            try:
                record, created = self._upsert(result)
            except StorageManagerError as e:
                if self.fail_fast:
                    raise PersistenceFailure(result.address, e) from e
                if self.logger:
                    self.logger.error(f"Could not persist {result.address}", exception=e)
                report.failures.append((result.address, str(e)))
                continue

            if created:
                report.created += 1
            else:
                report.updated += 1

            if self.on_host:
                self.on_host(result, record)

        return report

    def reconcile(self, result: ScanResult) -> Optional[HostRecord]:
        """
        Persist a single result.

        Returns:
            The stored record, or None when the result has no open ports

        Raises:
            PersistenceFailure: If the repository rejected the write
        """
        if not result.has_open_ports:
            return None

        try:
            record, _ = self._upsert(result)
        except StorageManagerError as e:
            raise PersistenceFailure(result.address, e) from e
        return record

    def _upsert(self, result: ScanResult):
        """Create or update the record for ``result``; returns ``(record, created)``."""
        record = create_host_record(result.resolved_name, result.address, result.open_ports)

        try:
            existing = self.repository.get_by_ip(result.address)
        except HostNotFoundError:
            try:
                stored = self.repository.create(record)
            except DuplicateHostError:
                # Another writer created the address between lookup and insert
                existing = self.repository.get_by_ip(result.address)
            else:
                self._log_debug(f"Created host record {stored.id} for {result.address}")
                return stored, True

        stored = self.repository.update(existing.id, record)
        self._log_debug(f"Updated host record {stored.id} for {result.address}")
        return stored, False

    def _log_debug(self, message: str) -> None:
        if self.logger:
            self.logger.debug(message)
