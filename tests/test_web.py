import pytest

from host_storage.models import HostRecord
from subnet_discovery.config.config_loader import SweepConfig
from subnet_discovery.core.data_models import PortSet
from subnet_discovery.core.sweep import SweepCoordinator
from subnet_discovery.utils.error_handler import ConfigurationError
from subnet_discovery.web.app import create_app
from subnet_discovery.web.config import Config, _int_from_env


OPEN = {"192.168.1.1": (22, 80), "192.168.1.3": (443,)}


def fake_sweeper(addresses):
    coordinator = SweepCoordinator(
        SweepConfig(ports=PortSet((22, 80, 443)), timeout=0.1, max_workers=4),
        probe=lambda address, port, timeout: port in OPEN.get(address, ()),
        resolver=lambda address: f"{address}.lan",
    )
    return coordinator.sweep(addresses)


@pytest.fixture
def client(repository):
    app = create_app(repository=repository, sweep_config=SweepConfig(), sweeper=fake_sweeper)
    app.config["TESTING"] = True
    return app.test_client()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_hosts_empty(client):
    body = client.get("/api/hosts").get_json()
    assert body["success"] is True
    assert body["data"] == {"hosts": [], "count": 0}


def test_hosts_tolerates_malformed_port_list(client, repository):
    repository.create(HostRecord("odd.lan", "192.168.1.9", "22,ssh"))
    response = client.get("/api/hosts")

    assert response.status_code == 200
    assert response.get_json()["data"]["hosts"][0]["ports"] == [22]


def test_refresh_persists_found_hosts(client):
    response = client.post("/api/refresh", json={"ip_address": "192.168.1.1/30"})
    body = response.get_json()

    assert response.status_code == 200
    assert body["data"]["report"]["received"] == 3
    assert body["data"]["report"]["created"] == 2
    assert sorted(h["ipv4_address"] for h in body["data"]["hosts"]) == ["192.168.1.1", "192.168.1.3"]

    listed = client.get("/api/hosts").get_json()["data"]["hosts"]
    assert [h["ports_csv"] for h in listed if h["ipv4_address"] == "192.168.1.1"] == ["22,80"]


def test_refresh_twice_keeps_ids(client):
    client.post("/api/refresh", json={"ip_address": "192.168.1.1/30"})
    first = {h["ipv4_address"]: h["id"] for h in client.get("/api/hosts").get_json()["data"]["hosts"]}

    body = client.post("/api/refresh", json={"ip_address": "192.168.1.1/30"}).get_json()
    second = {h["ipv4_address"]: h["id"] for h in client.get("/api/hosts").get_json()["data"]["hosts"]}

    assert body["data"]["report"]["updated"] == 2
    assert first == second


@pytest.mark.parametrize("target", ["192.168.50.1/deez", "10.0.0.1/²"])
def test_refresh_bad_target(client, repository, target):
    response = client.post("/api/refresh", json={"ip_address": target})
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "INVALID_TARGET"
    assert repository.all() == []


@pytest.mark.parametrize("payload", [{}, {"ip_address": ""}])
def test_refresh_missing_field(client, payload):
    assert client.post("/api/refresh", json=payload).status_code == 400


def test_refresh_requires_json(client):
    response = client.post("/api/refresh", data="192.168.1.1/24", content_type="text/plain")
    assert response.status_code == 400


def test_unknown_route_is_json(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_port_setting_keeps_unparseable_value(monkeypatch):
    monkeypatch.setenv("FLASK_PORT", "eighty")
    assert _int_from_env("FLASK_PORT", 8080) == "eighty"
    monkeypatch.delenv("FLASK_PORT")
    assert _int_from_env("FLASK_PORT", 8080) == 8080


def test_bad_port_is_a_configuration_error(monkeypatch, repository):
    monkeypatch.setattr(Config, "PORT", "eighty")
    assert "ERROR: Invalid PORT value: 'eighty'" in Config.validate_configuration()

    with pytest.raises(ConfigurationError):
        create_app(repository=repository, sweep_config=SweepConfig(), sweeper=fake_sweeper)
