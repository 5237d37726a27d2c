import sys

from network_relay.config import BIND_ADDR, DEFAULT_RELAY_PORTS, DEVICE_ADDR
from network_relay.server.errors import SetupError
from network_relay.server.manager import RelayManager
from network_relay.utils.logger import logger


def main():
    if not DEVICE_ADDR:
        logger.error("RELAY_DEVICE_ADDR is not set (resolvable address of the device)")
        return 1

    manager = RelayManager(BIND_ADDR, DEVICE_ADDR, DEFAULT_RELAY_PORTS)
    try:
        manager.run()
    except SetupError as e:
        logger.error(f"Relay not started: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("\nRelay stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
