class RelayError(Exception):
    """Base class for relay failures."""


class SetupError(RelayError):
    """A relay unit could not be brought up.

    ``step`` is one of ``resolve``, ``bind``, ``connect`` or ``spawn``.
    """

    def __init__(self, port, step, cause=None):
        self.port = str(port)
        self.step = step
        self.cause = cause
        message = f"relay on port {self.port} failed at {step}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ShutdownTimeout(RelayError):
    """A relay worker did not exit after cancellation; usually a stuck syscall."""

    def __init__(self, port, workers):
        self.port = str(port)
        self.workers = list(workers)
        super().__init__(
            f"relay on port {self.port}: workers still running after stop: "
            f"{', '.join(self.workers)}"
        )
