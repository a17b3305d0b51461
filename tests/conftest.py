"""Shared fixtures for the test suite."""

import socket

import pytest

from host_storage import InMemoryHostRepository
from subnet_discovery.utils.logger import Logger, LogLevel


@pytest.fixture
def repository():
    return InMemoryHostRepository()


@pytest.fixture
def quiet_logger():
    return Logger("test", LogLevel.ERROR)


@pytest.fixture
def listener():
    """Factory for listening loopback sockets on ephemeral ports."""
    sockets = []

    def _open() -> int:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("127.0.0.1", 0))
        sock.listen(8)
        sockets.append(sock)
        return sock.getsockname()[1]

    yield _open

    for sock in sockets:
        sock.close()


@pytest.fixture
def closed_port():
    """A loopback port that nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
