"""
Serial port management for the VL53L0X monitor

Handles port enumeration and selection, opening, blocking reads that can
be cancelled from another thread, and line writes.
"""

import threading
from typing import List, Optional, Tuple

import serial
import serial.tools.list_ports

from ..errors import (
    PortOpenError,
    StreamReadError,
    StreamWriteError,
    TransportUnavailableError,
)
from ..utils.constants import DEFAULT_BAUDRATE, LINE_TERMINATOR, WIRE_ENCODING
from ..utils.logger import get_logger

logger = get_logger(__name__)


def enumerate_ports() -> List[Tuple[str, str]]:
    """
    Enumerate available serial ports

    Returns:
        List of (port_name, description) tuples
        Example: [("/dev/ttyUSB0", "CP2102 USB to UART"), ...]
    """
    ports = []
    for port_info in serial.tools.list_ports.comports():
        ports.append((port_info.device, port_info.description))

    ports.sort(key=lambda x: x[0])

    return ports


def select_port(port: Optional[str] = None) -> str:
    """
    Resolve the port to open

    An explicit port is returned unchanged. Without one, the single
    available port is chosen.

    Raises:
        TransportUnavailableError: No port available, or several and none chosen
    """
    if port:
        return port

    ports = enumerate_ports()
    if not ports:
        raise TransportUnavailableError("No serial ports found")
    if len(ports) > 1:
        names = ", ".join(name for name, _ in ports)
        raise TransportUnavailableError(
            f"Several serial ports found ({names}); choose one with --port")

    logger.info(f"Auto-selected {ports[0][0]} ({ports[0][1]})")
    return ports[0][0]


class SerialTransport:
    """
    Serial connection to the sensor board

    Reads have no timeout: ``read()`` blocks until data arrives, the port
    fails, or ``cancel_read()`` is called from another thread. Writes are
    serialized with a lock and refused after ``release_writer()``.
    """

    # Standard baud rates offered by the CLI
    BAUD_RATES = [
        9600,
        19200,
        38400,
        57600,
        115200,
        230400,
        460800,
        921600,
    ]

    def __init__(self, port_name: str, baud_rate: int = DEFAULT_BAUDRATE):
        """
        Args:
            port_name: Port device name (e.g., "/dev/ttyUSB0", "COM3")
            baud_rate: Baud rate (default 115200)
        """
        self.port_name = port_name
        self.baud_rate = baud_rate
        self.port: Optional[serial.Serial] = None
        self._write_lock = threading.Lock()
        self._writable = False

    @property
    def is_open(self) -> bool:
        return self.port is not None and self.port.is_open

    @property
    def is_writable(self) -> bool:
        return self._writable and self.is_open

    def open(self):
        """
        Open the port

        DTR and RTS are held low so that opening the port does not reset
        boards wired for auto-programming.

        Raises:
            PortOpenError: Port busy, missing, or permission denied
        """
        self.close()

        try:
            port = serial.Serial()
            port.port = self.port_name
            port.baudrate = self.baud_rate
            port.timeout = None
            port.dtr = False
            port.rts = False
            port.open()
        except (serial.SerialException, OSError, ValueError) as e:
            raise PortOpenError(self.port_name, str(e)) from e

        self.port = port
        self._writable = True
        logger.info(f"Opened {self.port_name} @ {self.baud_rate} baud")

    def read(self) -> bytes:
        """
        Block until data is available and return all of it

        Returns:
            Bytes read; empty after ``cancel_read()``

        Raises:
            StreamReadError: Port closed or I/O failure
        """
        port = self.port
        if port is None or not port.is_open:
            raise StreamReadError(f"{self.port_name} is not open")

        try:
            return port.read(port.in_waiting or 1)
        except (serial.SerialException, OSError, TypeError) as e:
            # TypeError: pyserial may fail this way when the fd is closed mid-read
            raise StreamReadError(str(e)) from e

    def cancel_read(self):
        """Abort a blocked ``read()`` in another thread"""
        if self.port is not None:
            self.port.cancel_read()

    def write_line(self, text: str):
        """
        Write one line, appending the terminator

        Raises:
            StreamWriteError: Writer released, port closed, or I/O failure
        """
        with self._write_lock:
            if not self.is_writable:
                raise StreamWriteError(f"{self.port_name} is not writable")
            try:
                self.port.write((text + LINE_TERMINATOR).encode(WIRE_ENCODING))
                self.port.flush()
            except (serial.SerialException, OSError) as e:
                raise StreamWriteError(str(e)) from e

    def release_writer(self):
        """Refuse further writes; the port itself stays open"""
        with self._write_lock:
            self._writable = False

    def close(self):
        """Close serial port"""
        self._writable = False
        if self.port is not None:
            port = self.port
            self.port = None
            port.close()
            logger.info(f"Closed {self.port_name}")
