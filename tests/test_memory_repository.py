import pytest

from host_storage.exceptions import (
    DeleteFailedError, DuplicateHostError, HostNotFoundError, UpdateFailedError, ValidationError
)
from host_storage.models import HostRecord, create_host_record


def test_create_assigns_increasing_ids(repository):
    first = repository.create(HostRecord("a", "10.0.0.1", "22"))
    second = repository.create(HostRecord("b", "10.0.0.2", "80"))
    assert first.id == 1
    assert second.id == 2


def test_create_duplicate_address(repository):
    repository.create(HostRecord("a", "10.0.0.1", "22"))
    with pytest.raises(DuplicateHostError):
        repository.create(HostRecord("b", "10.0.0.1", "80"))


def test_get_by_ip_missing(repository):
    with pytest.raises(HostNotFoundError):
        repository.get_by_ip("10.0.0.1")


def test_update_keeps_id(repository):
    stored = repository.create(HostRecord("a", "10.0.0.1", "22"))
    updated = repository.update(stored.id, HostRecord("a2", "10.0.0.1", "22,80"))
    assert updated.id == stored.id
    assert repository.get_by_ip("10.0.0.1").ports_csv == "22,80"


def test_update_unknown_id(repository):
    with pytest.raises(UpdateFailedError):
        repository.update(42, HostRecord("a", "10.0.0.1", "22"))


def test_update_cannot_take_another_records_address(repository):
    repository.create(HostRecord("a", "10.0.0.1", "22"))
    other = repository.create(HostRecord("b", "10.0.0.2", "22"))
    with pytest.raises(UpdateFailedError):
        repository.update(other.id, HostRecord("b", "10.0.0.1", "22"))


def test_returned_records_are_copies(repository):
    stored = repository.create(HostRecord("a", "10.0.0.1", "22"))
    stored.fqdn = "mutated"
    assert repository.get_by_ip("10.0.0.1").fqdn == "a"


def test_all_and_delete(repository):
    first = repository.create(HostRecord("a", "10.0.0.1", "22"))
    repository.create(HostRecord("b", "10.0.0.2", "22"))
    repository.delete(first.id)

    assert [h.ipv4_address for h in repository.all()] == ["10.0.0.2"]
    with pytest.raises(DeleteFailedError):
        repository.delete(first.id)


def test_record_validation():
    with pytest.raises(ValidationError):
        HostRecord("a", "not-an-ip", "22")
    with pytest.raises(ValidationError):
        HostRecord("a", "10.0.0.1", "22", id=True)


def test_create_host_record_joins_ports_in_order():
    record = create_host_record("a", "10.0.0.1", [8080, 22])
    assert record.ports_csv == "8080,22"
    assert record.ports == [8080, 22]


def test_mongo_document_round_trip():
    record = HostRecord("a", "10.0.0.1", "22,80", id=5)
    doc = record.to_mongo_dict()
    assert doc == {"_id": 5, "fqdn": "a", "ipv4_address": "10.0.0.1", "listening_port": "22,80"}
    assert HostRecord.from_mongo_dict(doc) == record


def test_ports_skip_non_numeric_entries():
    record = HostRecord.from_mongo_dict(
        {"_id": 3, "fqdn": "a", "ipv4_address": "10.0.0.1", "listening_port": "22, http,²,443"}
    )
    assert record.ports == [22, 443]
    assert record.to_dict()["ports_csv"] == "22, http,²,443"
