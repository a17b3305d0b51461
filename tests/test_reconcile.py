from unittest import mock

import pytest

from host_storage.exceptions import (
    DuplicateHostError, HostNotFoundError, OperationError, UpdateFailedError
)
from host_storage.models import HostRecord
from subnet_discovery.core.channel import ResultChannel
from subnet_discovery.core.data_models import ScanResult
from subnet_discovery.core.reconcile import ReconciliationSink
from subnet_discovery.utils.error_handler import PersistenceFailure


def closed_channel(*results):
    channel = ResultChannel()
    for result in results:
        channel.publish(result)
    channel.close()
    return channel


def test_new_host_is_created(repository):
    report = ReconciliationSink(repository).consume(
        closed_channel(ScanResult("192.168.1.20", "nas.lan", (22, 445)))
    )

    assert report.created == 1
    stored = repository.get_by_ip("192.168.1.20")
    assert stored.fqdn == "nas.lan"
    assert stored.ports_csv == "22,445"
    assert stored.id > 0


def test_rescan_updates_in_place(repository):
    sink = ReconciliationSink(repository)
    sink.consume(closed_channel(ScanResult("192.168.1.20", "nas.lan", (22,))))
    first_id = repository.get_by_ip("192.168.1.20").id

    report = sink.consume(closed_channel(ScanResult("192.168.1.20", "nas.home", (80, 443))))

    assert report.updated == 1 and report.created == 0
    records = repository.all()
    assert len(records) == 1
    assert records[0].id == first_id
    assert records[0].ports_csv == "80,443"
    assert records[0].fqdn == "nas.home"


def test_results_without_ports_never_touch_storage():
    repo = mock.Mock()
    report = ReconciliationSink(repo).consume(
        closed_channel(ScanResult("10.0.0.1", "a", ()), ScanResult("10.0.0.2", "b", ()))
    )

    assert report.received == 2
    assert report.skipped == 2
    assert repo.method_calls == []


def test_duplicate_on_create_falls_back_to_update():
    existing = HostRecord("old", "10.0.0.7", "22", id=9)
    repo = mock.Mock()
    repo.get_by_ip.side_effect = [HostNotFoundError(ipv4_address="10.0.0.7"), existing]
    repo.create.side_effect = DuplicateHostError("10.0.0.7")
    repo.update.side_effect = lambda host_id, host: host.with_id(host_id)

    report = ReconciliationSink(repo).consume(closed_channel(ScanResult("10.0.0.7", "new", (80,))))

    assert report.updated == 1
    host_id, record = repo.update.call_args[0]
    assert host_id == 9
    assert record.ports_csv == "80"


def test_failure_is_isolated_by_default(repository):
    repo = mock.Mock(wraps=repository)
    original_create = repository.create

    def flaky_create(host):
        if host.ipv4_address == "10.0.0.2":
            raise OperationError("disk full", operation="create_host")
        return original_create(host)

    repo.create.side_effect = flaky_create

    report = ReconciliationSink(repo).consume(closed_channel(
        ScanResult("10.0.0.1", "a", (22,)),
        ScanResult("10.0.0.2", "b", (22,)),
        ScanResult("10.0.0.3", "c", (22,)),
    ))

    assert report.created == 2
    assert [address for address, _ in report.failures] == ["10.0.0.2"]
    assert "disk full" in report.failures[0][1]
    assert {h.ipv4_address for h in repository.all()} == {"10.0.0.1", "10.0.0.3"}


def test_fail_fast_raises_persistence_failure():
    repo = mock.Mock()
    repo.get_by_ip.return_value = HostRecord("x", "10.0.0.1", "22", id=1)
    repo.update.side_effect = UpdateFailedError(1)

    sink = ReconciliationSink(repo, fail_fast=True)
    with pytest.raises(PersistenceFailure) as exc_info:
        sink.consume(closed_channel(ScanResult("10.0.0.1", "x", (22,))))

    assert exc_info.value.address == "10.0.0.1"
    assert isinstance(exc_info.value.original_error, UpdateFailedError)


def test_on_host_callback_receives_stored_record(repository):
    seen = []
    sink = ReconciliationSink(repository, on_host=lambda result, record: seen.append((result, record)))
    sink.consume(closed_channel(ScanResult("10.0.0.1", "a", (22,)), ScanResult("10.0.0.2", "b", ())))

    assert len(seen) == 1
    result, record = seen[0]
    assert result.address == record.ipv4_address == "10.0.0.1"
    assert record.id is not None


def test_reconcile_single_result(repository):
    sink = ReconciliationSink(repository)
    assert sink.reconcile(ScanResult("10.0.0.1", "a", ())) is None

    first = sink.reconcile(ScanResult("10.0.0.1", "a", (22,)))
    second = sink.reconcile(ScanResult("10.0.0.1", "a", (22, 80)))
    assert first.id == second.id
    assert second.ports_csv == "22,80"
