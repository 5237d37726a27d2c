import os
import sys

# Relay loop tuning
POLL_INTERVAL = 0.1  # seconds between readiness checks
MAX_DATAGRAM_SIZE = 9000  # jumbo frames
SPAWN_TIMEOUT = 5.0
SHUTDOWN_TIMEOUT = 2.0

# Socket buffer sizing
if sys.platform == "darwin":
    # macOS rejects larger resizes
    RX_DSP_BUFF_SIZE = int(1e6)
else:
    # half a second of buffering at max rate
    RX_DSP_BUFF_SIZE = int(50e6)
TX_DSP_BUFF_SIZE = 1 << 20

# Addresses
BIND_ADDR = os.environ.get("RELAY_BIND_ADDR", "0.0.0.0")
DEVICE_ADDR = os.environ.get("RELAY_DEVICE_ADDR")

LOG_LEVEL = os.environ.get("RELAY_LOG_LEVEL", "INFO")

# (name, port, server_rx, server_tx, client_rx, client_tx)
DEFAULT_RELAY_PORTS = [
    ("ctrl", "49152", 0, 0, 0, 0),
    ("rxdsp0", "49156", 0, TX_DSP_BUFF_SIZE, RX_DSP_BUFF_SIZE, 0),
    ("txdsp0", "49157", TX_DSP_BUFF_SIZE, 0, 0, TX_DSP_BUFF_SIZE),
    ("rxdsp1", "49158", 0, TX_DSP_BUFF_SIZE, RX_DSP_BUFF_SIZE, 0),
    ("gps", "49172", 0, 0, 0, 0),
]
