"""
Interactive command console

Thin adapter between typed commands and ``Session`` methods, standing in
for the buttons of a graphical front end. One command per line:

    connect               open the port and handshake
    disconnect            close the port (recording is kept)
    start [hz]            start ranging (1-50 Hz, default 50)
    stop                  stop ranging
    rate <hz>             change rate
    cal <cm>              offset calibration at <cm> centimetres
    reset                 reset the device
    help                  repeat the HELP handshake
    status                show session state and recording size
    csv [path]            export the recording
    quit                  leave the console
"""

from typing import Callable

from .errors import MonitorError
from .session import Session


class CommandConsole:
    """Maps console commands onto a session."""

    def __init__(self, session: Session, output: Callable[[str], None] = print):
        self.session = session
        self.output = output

        self._handlers = {
            "connect": self._connect,
            "disconnect": self._disconnect,
            "start": self._start,
            "stop": self._stop,
            "rate": self._rate,
            "cal": self._cal,
            "reset": self._reset,
            "help": self._help,
            "status": self._status,
            "csv": self._csv,
        }

    def dispatch(self, text: str) -> bool:
        """
        Run one command line.

        Errors are written to the output, never raised.

        Returns:
            False when the console should exit
        """
        parts = text.split()
        if not parts:
            return True

        name, args = parts[0].lower(), parts[1:]
        if name in ("quit", "exit"):
            return False

        handler = self._handlers.get(name)
        if handler is None:
            self.output(f"Unknown command: {name} (try: {', '.join(sorted(self._handlers))}, quit)")
            return True

        try:
            handler(args)
        except (MonitorError, ValueError, OSError) as e:
            self.output(f"Error: {e}")
        return True

    def run(self, lines) -> None:
        """Dispatch commands from an iterable of lines (e.g. ``sys.stdin``)."""
        for line in lines:
            if not self.dispatch(line):
                break

    def _require_connection(self) -> bool:
        if not self.session.is_connected:
            self.output("Not connected; use 'connect' first")
            return False
        return True

    def _connect(self, args):
        self.session.connect()
        self.output(f"Connected ({self.session.status_text})")

    def _disconnect(self, args):
        self.session.disconnect()

    def _start(self, args):
        if not self._require_connection():
            return
        hz = args[0] if args else None
        if not self.session.start(hz):
            self.output(f"Start requested @ {self.session.last_requested_hz} Hz, "
                        "waiting for device")

    def _stop(self, args):
        if self._require_connection():
            self.session.stop()

    def _rate(self, args):
        if not args:
            raise ValueError("usage: rate <hz>")
        if self._require_connection():
            self.session.set_rate(args[0])

    def _cal(self, args):
        if not args:
            raise ValueError("usage: cal <cm>")
        if self._require_connection():
            self.session.calibrate(args[0])

    def _reset(self, args):
        if self._require_connection():
            self.session.reset()

    def _help(self, args):
        if self._require_connection():
            self.session.help()

    def _status(self, args):
        session = self.session
        bounds = session.bounds
        self.output(
            f"{session.state.name}: {session.status_text} | "
            f"{len(session.store)} samples | "
            f"x [{bounds.x_min}, {bounds.x_max}] ms, y max {bounds.y_max} mm"
        )
        if session.last_calibration:
            self.output(f"Last calibration: {session.last_calibration}")

    def _csv(self, args):
        path = self.session.save_csv(args[0] if args else None)
        self.output(f"Wrote {len(self.session.store)} samples to {path}")
