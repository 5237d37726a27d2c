import selectors
import socket
import threading
from collections import namedtuple

from network_relay.config import (
    MAX_DATAGRAM_SIZE,
    POLL_INTERVAL,
    SHUTDOWN_TIMEOUT,
    SPAWN_TIMEOUT,
)
from network_relay.server.endpoint import EndpointTracker
from network_relay.server.errors import SetupError, ShutdownTimeout
from network_relay.utils.logger import logger

PortConfig = namedtuple(
    "PortConfig",
    ["name", "port", "server_rx_size", "server_tx_size", "client_rx_size", "client_tx_size"],
    defaults=(0, 0, 0, 0),
)


class RelayStats:
    # Each counter has exactly one writing thread.
    def __init__(self):
        self.forwarded_to_client = 0
        self.bytes_to_client = 0
        self.forwarded_to_server = 0
        self.bytes_to_server = 0
        self.dropped = 0
        self.server_errors = 0
        self.client_errors = 0

    def __str__(self):
        return (
            f"to client: {self.forwarded_to_client} pkts/{self.bytes_to_client} B, "
            f"to server: {self.forwarded_to_server} pkts/{self.bytes_to_server} B, "
            f"dropped: {self.dropped}, "
            f"errors: {self.server_errors + self.client_errors}"
        )


def check_port(port):
    """Return ``port`` as an int, raising ValueError outside 0-65535."""
    number = int(port)
    if not 0 <= number <= 65535:
        raise ValueError(f"port {port} out of range 0-65535")
    return number


def resolve(host, port):
    """Resolve ``host`` to the first IPv4 UDP endpoint on ``port``."""
    infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)
    return infos[0][4]


def resize_buffers(sock, rx_size, tx_size, label):
    """Apply non-zero buffer sizes to ``sock``; failures only cost throughput."""
    for option, size, kind in (
        (socket.SO_RCVBUF, rx_size, "receive"),
        (socket.SO_SNDBUF, tx_size, "send"),
    ):
        if not size:
            continue
        try:
            sock.setsockopt(socket.SOL_SOCKET, option, size)
        except (OSError, OverflowError) as e:
            logger.warning(f"{label}: could not set {kind} buffer to {size} bytes ({e}), using OS default")
            continue
        actual = sock.getsockopt(socket.SOL_SOCKET, option)
        if actual < size:
            logger.warning(f"{label}: {kind} buffer clamped to {actual} bytes (requested {size})")


def wait_for_recv_ready(selector, timeout=POLL_INTERVAL):
    return bool(selector.select(timeout))


class RelayUnit:
    """Bidirectional relay for a single UDP port.

    ``server_socket`` is bound to (server_addr, port) and receives traffic
    from whichever host application contacts it. ``client_socket`` is
    connected to (client_addr, port), the device. Datagrams from the server
    side go to the device; datagrams from the device go back to the most
    recent server-side sender.

    Construction blocks until both forwarding threads are running. Call
    ``stop()`` (or leave the ``with`` block) to tear the unit down.
    """

    def __init__(self, server_addr, client_addr, port,
                 server_rx_size=0, server_tx_size=0,
                 client_rx_size=0, client_tx_size=0,
                 stop_event=None, name=None):
        self.port = str(port)
        self.name = name or self.port
        self.server_socket = None
        self.client_socket = None
        self.endpoint = EndpointTracker()
        self.stats = RelayStats()

        self._stop_event = stop_event if stop_event is not None else threading.Event()
        self._cancel = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._threads = []

        try:
            self._port_number = self._check_port(port)
            self._open_server_socket(server_addr, server_rx_size, server_tx_size)
            self._open_client_socket(client_addr, client_rx_size, client_tx_size)
            self._spawn_workers()
        except BaseException:
            self._abort()
            raise

    def _check_port(self, port):
        try:
            return check_port(port)
        except (TypeError, ValueError) as e:
            raise SetupError(self.port, "resolve", e) from e

    def _resolve(self, host):
        try:
            return resolve(host, self._port_number)
        except OSError as e:
            raise SetupError(self.port, "resolve", e) from e

    def _open_server_socket(self, server_addr, rx_size, tx_size):
        endpoint = self._resolve(server_addr)
        try:
            self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self.server_socket.bind(endpoint)
        except OSError as e:
            raise SetupError(self.port, "bind", e) from e
        resize_buffers(self.server_socket, rx_size, tx_size, f"{self.name} server socket")

    def _open_client_socket(self, client_addr, rx_size, tx_size):
        endpoint = self._resolve(client_addr)
        try:
            self.client_socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self.client_socket.connect(endpoint)
        except OSError as e:
            raise SetupError(self.port, "connect", e) from e
        resize_buffers(self.client_socket, rx_size, tx_size, f"{self.name} client socket")

    def _spawn_workers(self):
        logger.info(f"Spawning relay threads... {self.port}")
        for target, role in ((self._server_loop, "server"), (self._client_loop, "client")):
            ready = threading.Event()
            thread = threading.Thread(
                target=target,
                args=(ready,),
                name=f"relay-{self.port}-{role}",
                daemon=True,
            )
            try:
                thread.start()
            except RuntimeError as e:
                raise SetupError(self.port, "spawn", e) from e
            self._threads.append(thread)
            if not ready.wait(SPAWN_TIMEOUT):
                raise SetupError(self.port, "spawn", f"{role} thread did not start")
        logger.info(f"    done! {self.port}")

    def _abort(self):
        self._cancel.set()
        for thread in self._threads:
            thread.join(SHUTDOWN_TIMEOUT)
        self._close_sockets()
        self._stopped = True

    def _close_sockets(self):
        for sock in (self.server_socket, self.client_socket):
            if sock is not None:
                sock.close()

    def _should_stop(self):
        return self._cancel.is_set() or self._stop_event.is_set()

    def _server_loop(self, ready):
        logger.debug(f"    entering server loop {self.port}")
        with selectors.DefaultSelector() as selector:
            selector.register(self.server_socket, selectors.EVENT_READ)
            ready.set()
            while not self._should_stop():
                if not wait_for_recv_ready(selector):
                    continue
                try:
                    data, addr = self.server_socket.recvfrom(MAX_DATAGRAM_SIZE)
                except OSError as e:
                    self.stats.server_errors += 1
                    logger.warning(f"{self.name}: receive on server socket failed: {e}")
                    continue

                if self.endpoint.update(addr):
                    logger.info(f"{self.name}: client endpoint is now {addr[0]}:{addr[1]}")

                # cancelled while receiving: no further sends
                if self._should_stop():
                    break
                try:
                    self.client_socket.send(data)
                except OSError as e:
                    self.stats.server_errors += 1
                    logger.warning(f"{self.name}: forward of {len(data)} bytes to device failed: {e}")
                    continue
                self.stats.forwarded_to_client += 1
                self.stats.bytes_to_client += len(data)
        logger.debug(f"    exiting server loop {self.port}")

    def _client_loop(self, ready):
        logger.debug(f"    entering client loop {self.port}")
        with selectors.DefaultSelector() as selector:
            selector.register(self.client_socket, selectors.EVENT_READ)
            ready.set()
            while not self._should_stop():
                if not wait_for_recv_ready(selector):
                    continue
                try:
                    data = self.client_socket.recv(MAX_DATAGRAM_SIZE)
                except OSError as e:
                    self.stats.client_errors += 1
                    logger.warning(f"{self.name}: receive on client socket failed: {e}")
                    continue

                endpoint = self.endpoint.get()
                if endpoint is None:
                    self.stats.dropped += 1
                    logger.debug(f"{self.name}: no client endpoint yet, dropped {len(data)} bytes")
                    continue

                if self._should_stop():
                    break
                try:
                    self.server_socket.sendto(data, endpoint)
                except OSError as e:
                    self.stats.client_errors += 1
                    logger.warning(f"{self.name}: reply of {len(data)} bytes to {endpoint.host}:{endpoint.port} failed: {e}")
                    continue
                self.stats.forwarded_to_server += 1
                self.stats.bytes_to_server += len(data)
        logger.debug(f"    exiting client loop {self.port}")

    @property
    def server_address(self):
        return self.server_socket.getsockname()

    @property
    def client_address(self):
        return self.client_socket.getsockname()

    @property
    def is_running(self):
        return bool(self._threads) and all(t.is_alive() for t in self._threads)

    @property
    def stopped(self):
        return self._stopped

    def stop(self, timeout=SHUTDOWN_TIMEOUT):
        """Cancel both loops, wait for them, then close the sockets.

        Safe to call more than once. Raises ShutdownTimeout if a worker is
        still alive after ``timeout`` seconds; the sockets are closed anyway.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
            logger.info(f"Killing relay threads... {self.port}")
            self._cancel.set()
            stuck = []
            for thread in self._threads:
                thread.join(timeout)
                if thread.is_alive():
                    stuck.append(thread.name)
            self._close_sockets()
            if stuck:
                raise ShutdownTimeout(self.port, stuck)
            logger.info(f"    done! {self.port}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def __repr__(self):
        state = "stopped" if self._stopped else "running"
        return f"<RelayUnit {self.name} port={self.port} {state}>"


def start_relay(server_addr, client_addr, config, stop_event=None):
    """Build and start a RelayUnit from a PortConfig. Raises SetupError."""
    return RelayUnit(
        server_addr,
        client_addr,
        config.port,
        server_rx_size=config.server_rx_size,
        server_tx_size=config.server_tx_size,
        client_rx_size=config.client_rx_size,
        client_tx_size=config.client_tx_size,
        stop_event=stop_event,
        name=config.name,
    )


def stop_relay(unit, timeout=SHUTDOWN_TIMEOUT):
    unit.stop(timeout)
