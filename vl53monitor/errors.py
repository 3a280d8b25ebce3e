"""
Exceptions raised by the VL53L0X monitor.

Connection failures are raised to the caller of ``Session.connect()``.
Stream failures are raised by the transport and converted by the session
into a ``STOPPED`` state plus an ``on_error`` callback.
"""


class MonitorError(Exception):
    """Base class for all monitor errors."""


class TransportUnavailableError(MonitorError):
    """No serial port is available, or none was chosen."""


class PortOpenError(MonitorError):
    """The serial port exists but could not be opened (busy, permission denied)."""

    def __init__(self, port: str, reason: str):
        super().__init__(f"Could not open {port}: {reason}")
        self.port = port
        self.reason = reason


class StreamReadError(MonitorError):
    """Reading from an open port failed (device unplugged, I/O error)."""


class StreamWriteError(MonitorError):
    """Writing a command to an open port failed."""
