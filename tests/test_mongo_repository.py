from unittest import mock

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError, OperationFailure

from host_storage import mongo_repository
from host_storage.exceptions import (
    ConnectionError, DeleteFailedError, DuplicateHostError, HostNotFoundError,
    OperationError, RetryExhaustedError, UpdateFailedError
)
from host_storage.models import HostRecord
from host_storage.mongo_repository import MongoHostRepository


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(mongo_repository.time, "sleep", lambda seconds: None)


@pytest.fixture
def collections():
    return {"hosts": mock.MagicMock(), "counters": mock.MagicMock()}


@pytest.fixture
def repo(collections):
    client = mock.MagicMock()
    database = mock.MagicMock()
    database.__getitem__.side_effect = collections.__getitem__
    client.__getitem__.return_value = database

    repository = MongoHostRepository("mongodb://user:secret@db:27017/", "inventory", client=client)
    repository.connect()
    return repository


def test_connect_pings_server(repo):
    repo.client.admin.command.assert_called_with("ping")


def test_connect_failure_is_wrapped():
    client = mock.MagicMock()
    client.admin.command.side_effect = AutoReconnect("down")
    repository = MongoHostRepository("mongodb://user:secret@db:27017/", client=client)

    with pytest.raises(ConnectionError) as exc_info:
        repository.connect()

    assert "secret" not in str(exc_info.value)
    assert client.admin.command.call_count == 3


def test_operations_require_connection():
    repository = MongoHostRepository()
    with pytest.raises(ConnectionError):
        repository.get_by_ip("10.0.0.1")


def test_migrate_creates_unique_index(repo, collections):
    repo.migrate()
    args, kwargs = collections["hosts"].create_index.call_args
    assert args[0] == [("ipv4_address", 1)]
    assert kwargs["unique"] is True


def test_create_uses_counter_id(repo, collections):
    collections["counters"].find_one_and_update.return_value = {"_id": "hosts", "seq": 7}

    stored = repo.create(HostRecord("nas", "10.0.0.7", "22"))

    assert stored.id == 7
    collections["hosts"].insert_one.assert_called_once_with(
        {"_id": 7, "fqdn": "nas", "ipv4_address": "10.0.0.7", "listening_port": "22"}
    )


def test_create_duplicate(repo, collections):
    collections["counters"].find_one_and_update.return_value = {"seq": 1}
    collections["hosts"].insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

    with pytest.raises(DuplicateHostError):
        repo.create(HostRecord("nas", "10.0.0.7", "22"))


def test_get_by_ip(repo, collections):
    collections["hosts"].find_one.return_value = {
        "_id": 3, "fqdn": "nas", "ipv4_address": "10.0.0.7", "listening_port": "22,80"
    }
    record = repo.get_by_ip("10.0.0.7")
    assert record == HostRecord("nas", "10.0.0.7", "22,80", id=3)


def test_get_by_ip_missing(repo, collections):
    collections["hosts"].find_one.return_value = None
    with pytest.raises(HostNotFoundError):
        repo.get_by_ip("10.0.0.7")


def test_update_sets_fields_by_id(repo, collections):
    collections["hosts"].update_one.return_value = mock.Mock(matched_count=1)

    updated = repo.update(3, HostRecord("nas", "10.0.0.7", "443"))

    assert updated.id == 3
    collections["hosts"].update_one.assert_called_once_with(
        {"_id": 3}, {"$set": {"fqdn": "nas", "ipv4_address": "10.0.0.7", "listening_port": "443"}}
    )


def test_update_no_match(repo, collections):
    collections["hosts"].update_one.return_value = mock.Mock(matched_count=0)
    with pytest.raises(UpdateFailedError):
        repo.update(3, HostRecord("nas", "10.0.0.7", "443"))


@pytest.mark.parametrize("host_id", [0, -1, True])
def test_update_rejects_invalid_id(repo, collections, host_id):
    with pytest.raises(UpdateFailedError):
        repo.update(host_id, HostRecord("nas", "10.0.0.7", "443"))
    collections["hosts"].update_one.assert_not_called()


def test_all_sorted_by_id(repo, collections):
    cursor = collections["hosts"].find.return_value
    cursor.sort.return_value = [
        {"_id": 1, "fqdn": "a", "ipv4_address": "10.0.0.1", "listening_port": "22"},
        {"_id": 2, "fqdn": "b", "ipv4_address": "10.0.0.2", "listening_port": "80"},
    ]
    assert [h.id for h in repo.all()] == [1, 2]
    cursor.sort.assert_called_once_with("_id", 1)


def test_delete_missing(repo, collections):
    collections["hosts"].delete_one.return_value = mock.Mock(deleted_count=0)
    with pytest.raises(DeleteFailedError):
        repo.delete(9)


def test_transient_errors_are_retried(repo, collections):
    collections["hosts"].find_one.side_effect = [
        AutoReconnect("primary stepped down"),
        {"_id": 1, "fqdn": "a", "ipv4_address": "10.0.0.1", "listening_port": "22"},
    ]
    assert repo.get_by_ip("10.0.0.1").id == 1
    assert collections["hosts"].find_one.call_count == 2


def test_retry_exhausted(repo, collections):
    collections["hosts"].find_one.side_effect = AutoReconnect("down")
    with pytest.raises(RetryExhaustedError) as exc_info:
        repo.get_by_ip("10.0.0.1")
    assert exc_info.value.attempts == 3


def test_non_retryable_failure_is_wrapped(repo, collections):
    collections["hosts"].find_one.side_effect = OperationFailure("not authorized", code=13)
    with pytest.raises(OperationError):
        repo.get_by_ip("10.0.0.1")
    assert collections["hosts"].find_one.call_count == 1


def test_disconnect_keeps_injected_client(repo):
    client = repo.client
    repo.disconnect()
    client.close.assert_not_called()
    assert repo.database is None
