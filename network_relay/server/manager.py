import threading
import time

from network_relay.config import POLL_INTERVAL
from network_relay.server.errors import SetupError, ShutdownTimeout
from network_relay.server.relay_unit import PortConfig, start_relay
from network_relay.utils.logger import logger


class RelayManager:
    """Runs one RelayUnit per configured port until asked to stop."""

    def __init__(self, bind_addr, device_addr, port_configs, stop_event=None):
        self.bind_addr = bind_addr
        self.device_addr = device_addr
        self.port_configs = [
            c if isinstance(c, PortConfig) else PortConfig(*c) for c in port_configs
        ]
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.units = []

    def start(self):
        """Start every unit in order. If one fails or startup is interrupted,
        stop the units already running and re-raise.
        """
        logger.info("=" * 70)
        logger.info(f"RELAY {self.bind_addr} <-> {self.device_addr}")
        for config in self.port_configs:
            try:
                unit = start_relay(self.bind_addr, self.device_addr, config, self.stop_event)
            except SetupError as e:
                logger.error(f"Failed to start {config.name}: {e}")
                self.stop()
                raise
            except BaseException:
                self.stop()
                raise
            self.units.append(unit)
            logger.info(f"{config.name} relaying on port {config.port}")
        logger.info("=" * 70)

    def request_stop(self):
        self.stop_event.set()

    def wait(self):
        while not self.stop_event.is_set():
            time.sleep(POLL_INTERVAL)

    def stop(self):
        """Stop all running units, last started first."""
        self.stop_event.set()
        while self.units:
            unit = self.units.pop()
            try:
                unit.stop()
            except ShutdownTimeout as e:
                logger.error(f"{e} (please report this)")
            logger.info(f"{unit.name} stats: {unit.stats}")

    def run(self):
        try:
            self.start()
            logger.info("Relay running, press Ctrl + C to stop...")
            self.wait()
        finally:
            self.stop()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
