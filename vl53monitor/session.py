"""
VL53L0X Monitor Session
=======================

Owns one serial connection to the sensor board: opens the port, performs
the ``HELP`` → ``# READY`` handshake, runs a background read thread that
frames and classifies incoming lines, records measurements in a
``TimeSeriesStore`` and drives the session state machine.

States::

    DISCONNECTED -> CONNECTING -> AWAITING_READY -> READY <-> RUNNING <-> STOPPED

Example:
    >>> from vl53monitor import Session, MonitorConfig
    >>>
    >>> with Session(MonitorConfig(port='/dev/ttyUSB0')) as session:
    ...     session.start(25)      # sent as soon as the device is READY
    ...     time.sleep(10)
    >>> print(session.export_csv())
"""

import codecs
import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

from .config import MonitorConfig
from .data.samples import AxisBounds, Sample, TimeSeriesStore
from .errors import MonitorError, StreamReadError, StreamWriteError
from .serial.commands import Command, clamp_hz, encode
from .serial.framer import LineFramer
from .serial.port_manager import SerialTransport, select_port
from .serial.protocol import (
    Classification,
    Data,
    IgnoreReason,
    Meta,
    MetaKind,
    classify,
    parse_start_hz,
)
from .utils.constants import WIRE_ENCODING
from .utils.logger import get_logger

logger = get_logger(__name__)


class SessionState(IntEnum):
    """Connection / readiness / run state"""
    DISCONNECTED = 0
    CONNECTING = 1
    AWAITING_READY = 2   # HELP sent, waiting for "# READY"
    READY = 3
    RUNNING = 4
    STOPPED = 5


@dataclass
class SessionCallbacks:
    """
    Optional hooks for a UI layer.

    All callbacks run with the session lock held, in wire order. Exceptions
    they raise are logged and do not stop the read thread.

    Attributes:
        on_status: (state, status_text) after every state or status change
        on_sample: (sample, axis_bounds) for every recorded measurement
        on_meta: Every ``#`` status line
        on_log: Diagnostic text (status lines, sent commands, ignored lines)
        on_error: Read or write failures
    """
    on_status: Optional[Callable[[SessionState, str], None]] = None
    on_sample: Optional[Callable[[Sample, AxisBounds], None]] = None
    on_meta: Optional[Callable[[Meta], None]] = None
    on_log: Optional[Callable[[str], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None


class Session:
    """
    Serial line-protocol session with the ranging firmware.

    All state is mutated under one re-entrant lock, shared by the read
    thread (status lines) and the caller's thread (commands).
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        callbacks: Optional[SessionCallbacks] = None,
        store: Optional[TimeSeriesStore] = None,
        transport_factory: Callable[[str, int], SerialTransport] = SerialTransport,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            config: Session settings (defaults to ``MonitorConfig()``)
            callbacks: UI hooks
            store: Sample store; one is built from ``config`` if omitted
            transport_factory: Called with (port_name, baudrate) on connect
            clock: Milliseconds since connect, used to timestamp legacy
                   bare-mm lines. Defaults to a monotonic clock.
        """
        self.config = config if config is not None else MonitorConfig()
        self.callbacks = callbacks if callbacks is not None else SessionCallbacks()
        if store is None:
            store = TimeSeriesStore(
                capacity=self.config.capacity,
                span_ms=self.config.x_span_ms,
                initial_y_max=self.config.y_initial_max_mm,
                ladder=self.config.y_step_ladder,
            )
        self.store = store

        self._transport_factory = transport_factory
        self._clock = clock

        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._transport: Optional[SerialTransport] = None
        self._read_thread: Optional[threading.Thread] = None
        self._reader_failed = False
        self._stop_event = threading.Event()
        self._framer = LineFramer()
        self._t0 = time.monotonic()

        self.state = SessionState.DISCONNECTED
        self.status_text = "DISCONNECTED"
        self.want_running = False
        self.last_requested_hz = clamp_hz(self.config.default_hz)
        self.device_ready = False
        self.last_calibration: Optional[str] = None
        self.last_error: Optional[Exception] = None

    def __enter__(self) -> 'Session':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.is_connected:
            self.stop()
        self.disconnect()

    # =========================================================================
    # Connection Management
    # =========================================================================

    @property
    def is_connected(self) -> bool:
        return self._transport is not None

    def connect(self) -> None:
        """
        Open the port, send ``HELP`` and start the read thread.

        No-op if already connected.

        Raises:
            TransportUnavailableError: No port to open
            PortOpenError: The port could not be opened
        """
        with self._lock:
            if self.state != SessionState.DISCONNECTED:
                logger.debug(f"connect() ignored in state {self.state.name}")
                return
            self._set_state(SessionState.CONNECTING, "CONNECTING…")

        try:
            port_name = select_port(self.config.port)
            transport = self._transport_factory(port_name, self.config.baudrate)
            transport.open()
        except Exception as e:
            if isinstance(e, MonitorError):
                logger.error(f"Connect failed: {e}")
            else:
                logger.exception("Unexpected failure while connecting")
            with self._lock:
                self.last_error = e
                self._set_state(SessionState.DISCONNECTED, f"CONNECT FAILED: {e}")
            raise

        with self._lock:
            self._transport = transport
            self._stop_event = threading.Event()
            self._framer = LineFramer()
            self._reader_failed = False
            self._t0 = time.monotonic()

            self.want_running = False
            self.last_requested_hz = clamp_hz(self.config.default_hz)
            self.device_ready = False
            self.last_calibration = None
            self.last_error = None
            if self.config.clear_on_connect:
                self.store.clear()

            self._read_thread = threading.Thread(
                target=self._read_loop,
                args=(transport, self._framer, self._stop_event),
                name="vl53monitor-reader",
                daemon=True,
            )
            self._read_thread.start()

            self._set_state(SessionState.AWAITING_READY, "CONNECTING…")
            self._send(encode(Command.HELP))

    def disconnect(self, clear_samples: bool = False) -> None:
        """
        Stop the read thread and release the port.

        Steps run in order and each one's failure is logged without
        skipping the rest: signal the read loop, cancel the pending read
        and wait (bounded) for the thread, release the writer, close the
        port. Recorded samples are kept unless ``clear_samples`` is set.
        """
        with self._lock:
            transport = self._transport
            thread = self._read_thread
            stop_event = self._stop_event
            self.want_running = False
            if transport is None:
                if clear_samples:
                    self.store.clear()
                return

        stop_event.set()

        try:
            transport.cancel_read()
        except Exception as e:
            logger.warning(f"Cancelling read failed: {e}")

        if thread is not None and thread is not threading.current_thread():
            thread.join(self.config.cancel_timeout)
            if thread.is_alive():
                logger.warning(
                    f"Read thread still running after {self.config.cancel_timeout}s")

        try:
            transport.release_writer()
        except Exception as e:
            logger.warning(f"Releasing writer failed: {e}")

        try:
            transport.close()
        except Exception as e:
            logger.warning(f"Closing port failed: {e}")

        with self._lock:
            self._transport = None
            self._read_thread = None
            self._reader_failed = False
            self.device_ready = False
            if clear_samples:
                self.store.clear()
            self._set_state(SessionState.DISCONNECTED, "DISCONNECTED")

    # =========================================================================
    # Commands
    # =========================================================================

    def start(self, hz=None) -> bool:
        """
        Request continuous ranging.

        The request is remembered; ``START`` is sent now if the device has
        answered the handshake, otherwise as soon as ``# READY`` arrives.

        Args:
            hz: Rate (clamped to 1-50; invalid → 50, None → config default)

        Returns:
            True if ``START`` was sent now
        """
        hz = clamp_hz(self.config.default_hz if hz is None else hz)
        with self._lock:
            if self._transport is None:
                logger.warning("start() ignored: not connected")
                return False
            if self._reader_failed:
                logger.warning("start() ignored: read failed, disconnect first")
                return False

            self.want_running = True
            self.last_requested_hz = hz
            if self.device_ready:
                return self._send_start()

            self._set_status("WAITING READY…")
            return False

    def stop(self) -> bool:
        """Stop ranging. Returns True if ``STOP`` was sent."""
        with self._lock:
            self.want_running = False
            if self._transport is None:
                return False
            sent = self._send(encode(Command.STOP))
            self._set_state(SessionState.STOPPED, "STOPPED")
            return sent

    def reset(self) -> bool:
        """Ask the device to reset; the store is cleared on ``# RESET``."""
        with self._lock:
            return self._send(encode(Command.RESET))

    def calibrate(self, cm) -> bool:
        """
        Offset calibration against a target at ``cm`` centimetres.

        Raises:
            ValueError: ``cm`` is not a non-negative number
        """
        line = encode(Command.CAL, cm=cm)
        with self._lock:
            return self._send(line)

    def set_rate(self, hz) -> bool:
        """Change the ranging rate without restarting."""
        with self._lock:
            return self._send(encode(Command.RATE, hz=hz))

    def help(self) -> bool:
        """Repeat the handshake."""
        with self._lock:
            return self._send(encode(Command.HELP))

    # =========================================================================
    # Recording
    # =========================================================================

    @property
    def bounds(self) -> AxisBounds:
        return self.store.bounds

    def export_csv(self) -> str:
        return self.store.export()

    def save_csv(self, path: Optional[str] = None) -> str:
        """
        Write the recording to ``path`` (default ``config.csv_path``).

        Returns:
            The path written
        """
        path = path or self.config.csv_path
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(self.export_csv())
        logger.info(f"Saved {len(self.store)} samples to {path}")
        return path

    # =========================================================================
    # Waiting
    # =========================================================================

    def wait_for_state(self, *states: SessionState,
                       timeout: Optional[float] = None) -> bool:
        """Block until the session is in one of ``states``."""
        with self._changed:
            return self._changed.wait_for(lambda: self.state in states, timeout)

    def wait_for_samples(self, count: int, timeout: Optional[float] = None) -> bool:
        """Block until at least ``count`` samples are recorded."""
        with self._changed:
            return self._changed.wait_for(lambda: len(self.store) >= count, timeout)

    # =========================================================================
    # Line Handling
    # =========================================================================

    def feed(self, text: str) -> None:
        """Frame decoded text and handle every completed line."""
        with self._lock:
            for line in self._framer.feed(text):
                self.handle_line(line)

    def handle_line(self, line: str) -> Classification:
        """
        Classify one line and apply it.

        Data lines are recorded even without an open transport (replaying
        a capture); status lines only change state while connected.
        """
        result = classify(line, self.config.boot_noise_prefixes)

        with self._lock:
            if isinstance(result, Meta):
                self._handle_meta(result)
            elif isinstance(result, Data):
                self._handle_data(result)
            elif result.reason == IgnoreReason.UNRECOGNIZED:
                logger.debug(f"Ignored line: {line!r}")
                self._log(f"? {line}")
        return result

    def _handle_meta(self, meta: Meta) -> None:
        logger.info(meta.payload)
        self._log(meta.payload)
        self._emit(self.callbacks.on_meta, meta)

        if self._transport is None or self._reader_failed:
            return

        if meta.kind == MetaKind.READY:
            self.device_ready = True
            if self.want_running and self._send_start():
                return
            self._set_state(SessionState.READY, "READY")
        elif meta.kind == MetaKind.START:
            hz = parse_start_hz(meta.payload) or self.last_requested_hz
            self._set_state(SessionState.RUNNING, f"RUNNING @ {hz} Hz")
        elif meta.kind == MetaKind.STOP:
            self._set_state(SessionState.STOPPED, "STOPPED")
        elif meta.kind == MetaKind.RESET:
            self.store.clear()
            self.device_ready = True
            self._set_state(SessionState.READY, "READY")
        elif meta.kind == MetaKind.CAL:
            self.last_calibration = meta.payload

    def _handle_data(self, data: Data) -> None:
        if data.is_legacy:
            if not self.config.accept_legacy:
                self._log(f"? {data.distance_mm}")
                return
            time_ms = self._now_ms()
        else:
            time_ms = data.time_ms

        sample = Sample(time_ms, data.distance_mm)
        bounds = self.store.append(sample)
        self._emit(self.callbacks.on_sample, sample, bounds)
        self._changed.notify_all()

    def _now_ms(self) -> int:
        if self._clock is not None:
            return int(self._clock())
        return int((time.monotonic() - self._t0) * 1000)

    # =========================================================================
    # Read Thread
    # =========================================================================

    def _read_loop(self, transport, framer: LineFramer,
                   stop_event: threading.Event) -> None:
        """Background thread: read chunks until cancelled or the port fails."""
        decoder = codecs.getincrementaldecoder(WIRE_ENCODING)(errors="replace")
        error: Optional[Exception] = None

        try:
            while not stop_event.is_set():
                chunk = transport.read()
                if stop_event.is_set():
                    break
                if chunk:
                    self._feed_lines(framer.feed(decoder.decode(chunk)), stop_event)
        except StreamReadError as e:
            error = e
        except Exception as e:
            logger.exception("Unexpected failure in read thread")
            error = e
        finally:
            framer.feed(decoder.decode(b"", final=True))
            tail = framer.flush()

        if stop_event.is_set():
            if tail:
                logger.debug(f"Dropped partial line on disconnect: {tail[0]!r}")
            return

        self._feed_lines(tail, stop_event)
        if error is not None:
            self._on_read_failure(error)

    def _feed_lines(self, lines, stop_event: threading.Event) -> None:
        for line in lines:
            if stop_event.is_set():
                return
            self.handle_line(line)

    def _on_read_failure(self, error: Exception) -> None:
        logger.error(f"Read error: {error}")
        with self._lock:
            self.last_error = error
            self.want_running = False
            self.device_ready = False
            self._reader_failed = True
            self._log(f"# read error: {error}")
            self._set_state(SessionState.STOPPED, f"READ ERROR: {error}")
            self._emit(self.callbacks.on_error, error)

    # =========================================================================
    # Internals (call with the lock held)
    # =========================================================================

    def _send(self, line: str) -> bool:
        transport = self._transport
        if transport is None or not transport.is_writable:
            logger.warning(f"Not connected, dropped command {line!r}")
            return False

        try:
            transport.write_line(line)
        except StreamWriteError as e:
            logger.error(f"Write failed: {e}")
            self.last_error = e
            self._emit(self.callbacks.on_error, e)
            return False

        logger.debug(f"> {line}")
        self._log(f"> {line}")
        return True

    def _send_start(self) -> bool:
        hz = self.last_requested_hz
        if not self._send(encode(Command.START, hz=hz)):
            return False
        self._set_state(SessionState.RUNNING, f"RUNNING @ {hz} Hz")
        return True

    def _set_state(self, state: SessionState, text: str) -> None:
        self.state = state
        self._set_status(text)

    def _set_status(self, text: str) -> None:
        self.status_text = text
        logger.debug(f"Status: {self.state.name} ({text})")
        self._emit(self.callbacks.on_status, self.state, text)
        self._changed.notify_all()

    def _log(self, text: str) -> None:
        self._emit(self.callbacks.on_log, text)

    def _emit(self, callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Callback {getattr(callback, '__name__', callback)} failed")
