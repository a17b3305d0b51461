import pytest

from host_storage.exceptions import OperationError
from subnet_discovery.core.data_models import LocalInterface
from subnet_discovery.main import (
    EXIT_BAD_TARGET, EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK, SubnetDiscoveryApp, create_argument_parser
)

INTERFACES = [
    LocalInterface("192.168.1.10", "192.168.1.0", 30, "255.255.255.252", "eth0", "aa:bb:cc:dd:ee:ff"),
    LocalInterface("10.0.0.2", "10.0.0.0", 31, "255.255.255.254", "wlan0"),
]


def make_app(repository, answers=("1",), open_map=None):
    open_map = open_map or {"192.168.1.10": (80,), "10.0.0.2": (22,)}
    replies = iter(answers)
    return SubnetDiscoveryApp(
        repository=repository,
        interface_provider=lambda: list(INTERFACES),
        input_func=lambda prompt: next(replies),
        probe=lambda address, port, timeout: port in open_map.get(address, ()),
        resolver=lambda address: "test.lan",
    )


def parse(*argv):
    return create_argument_parser().parse_args(list(argv))


def test_explicit_target(repository):
    code = make_app(repository).run(parse("--target", "192.168.1.9/30", "--ports", "22,80"))

    assert code == EXIT_OK
    assert [h.ipv4_address for h in repository.all()] == ["192.168.1.10"]


@pytest.mark.parametrize("target", ["192.168.50.1/deez", "192.168.50.1/²"])
def test_bad_target_exit_code(repository, target):
    assert make_app(repository).run(parse("--target", target)) == EXIT_BAD_TARGET
    assert repository.all() == []


def test_bad_ports_exit_code(repository):
    assert make_app(repository).run(parse("--target", "10.0.0.2/31", "--ports", "22,99999")) == EXIT_BAD_TARGET


def test_interface_prompt(repository):
    code = make_app(repository, answers=("2",)).run(parse("--ports", "22"))

    assert code == EXIT_OK
    assert [h.ipv4_address for h in repository.all()] == ["10.0.0.2"]


def test_interface_prompt_invalid_choice(repository):
    assert make_app(repository, answers=("7",)).run(parse()) == EXIT_BAD_TARGET


def test_named_interface(repository):
    assert make_app(repository).run(parse("--interface", "eth0", "--ports", "80")) == EXIT_OK
    assert repository.get_by_ip("192.168.1.10").ports_csv == "80"


def test_unknown_interface(repository):
    assert make_app(repository).run(parse("--interface", "eth9")) == EXIT_BAD_TARGET


def test_list_interfaces(repository, capsys):
    assert make_app(repository).run(parse("--list-interfaces")) == EXIT_OK
    assert "eth0" in capsys.readouterr().out


def test_missing_config_dir(repository, tmp_path):
    args = parse("--target", "10.0.0.2/31", "--config-dir", str(tmp_path / "missing"))
    assert make_app(repository).run(args) == EXIT_BAD_TARGET


def test_persistence_failures_give_failure_code(repository, monkeypatch):
    def broken_create(host):
        raise OperationError("write rejected", operation="create_host")

    monkeypatch.setattr(repository, "create", broken_create)
    assert make_app(repository).run(parse("--target", "10.0.0.2/31")) == EXIT_FAILURE


def test_fail_fast_aborts(repository, monkeypatch):
    def broken_create(host):
        raise OperationError("write rejected", operation="create_host")

    monkeypatch.setattr(repository, "create", broken_create)
    assert make_app(repository).run(parse("--target", "10.0.0.2/31", "--fail-fast")) == EXIT_FAILURE


def test_interrupt_exit_code(repository):
    def interrupt(prompt):
        raise KeyboardInterrupt

    app = SubnetDiscoveryApp(repository=repository, interface_provider=lambda: list(INTERFACES),
                             input_func=interrupt)
    assert app.run(parse()) == EXIT_INTERRUPTED


def test_target_and_interface_are_exclusive():
    with pytest.raises(SystemExit):
        parse("--target", "10.0.0.1/24", "--interface", "eth0")
