import socket
import sys
import threading

import pytest

RELAY_HOST = "127.0.0.1"
DEVICE_HOST = "127.0.0.2"

requires_loopback_range = pytest.mark.skipif(
    not sys.platform.startswith("linux"),
    reason="needs the whole 127.0.0.0/8 range on loopback",
)


def udp_socket(host="127.0.0.1", port=0, timeout=2.0):
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind((host, port))
    sock.settimeout(timeout)
    return sock


@pytest.fixture
def device():
    """Device-side peer bound on 127.0.0.2; its port is the relay port."""
    sock = udp_socket(DEVICE_HOST)
    yield sock
    sock.close()


@pytest.fixture
def make_peer():
    peers = []

    def factory(timeout=2.0):
        sock = udp_socket(RELAY_HOST, timeout=timeout)
        peers.append(sock)
        return sock

    yield factory
    for sock in peers:
        sock.close()


@pytest.fixture
def stop_event():
    return threading.Event()
