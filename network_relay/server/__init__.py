from .endpoint import Endpoint, EndpointTracker
from .errors import RelayError, SetupError, ShutdownTimeout
from .manager import RelayManager
from .relay_unit import PortConfig, RelayStats, RelayUnit, start_relay, stop_relay

__all__ = [
    'Endpoint', 'EndpointTracker',
    'RelayError', 'SetupError', 'ShutdownTimeout',
    'RelayManager',
    'PortConfig', 'RelayStats', 'RelayUnit', 'start_relay', 'stop_relay',
]
