import threading
from collections import namedtuple

Endpoint = namedtuple("Endpoint", ["host", "port"])


class EndpointTracker:
    """Last server-side sender seen by a relay unit.

    The server-facing loop is the only writer, the client-facing loop the
    only reader. The lock is held for the swap or the read alone, never
    across a socket call.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._endpoint = None

    def update(self, addr):
        endpoint = Endpoint(*addr[:2])
        with self._lock:
            previous = self._endpoint
            self._endpoint = endpoint
        return previous != endpoint

    def get(self):
        with self._lock:
            return self._endpoint

    @property
    def is_set(self):
        return self.get() is not None
