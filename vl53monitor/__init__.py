"""
vl53monitor - VL53L0X Serial Monitor
====================================

Talks to a microcontroller streaming VL53L0X distance readings over a
line-based serial protocol: handshake, start/stop/calibrate commands,
live recording with chart axis bounds, and CSV export.

Example:
    >>> from vl53monitor import Session, MonitorConfig
    >>>
    >>> with Session(MonitorConfig(port='/dev/ttyUSB0')) as session:
    ...     session.start(25)
    ...     session.wait_for_samples(100, timeout=10)
    >>> session.save_csv('vl53l0x_log.csv')
"""

from .config import MonitorConfig
from .data.samples import AxisBounds, Sample, TimeSeriesStore, parse_csv
from .errors import (
    MonitorError,
    PortOpenError,
    StreamReadError,
    StreamWriteError,
    TransportUnavailableError,
)
from .session import Session, SessionCallbacks, SessionState

__version__ = "1.0.0"
__all__ = [
    "MonitorConfig",
    "AxisBounds",
    "Sample",
    "TimeSeriesStore",
    "parse_csv",
    "MonitorError",
    "PortOpenError",
    "StreamReadError",
    "StreamWriteError",
    "TransportUnavailableError",
    "Session",
    "SessionCallbacks",
    "SessionState",
]
