"""
VL53L0X monitor entry point

Connects to the sensor board, starts ranging, prints samples as they
arrive and writes the recording to CSV on exit.

Examples:
    # List available ports
    vl53-monitor --list-ports

    # Record 30 s at 25 Hz
    vl53-monitor --port /dev/ttyUSB0 --hz 25 --duration 30 --csv run1.csv

    # Type commands (start, stop, cal 10, csv, quit, ...)
    vl53-monitor --port COM3 --interactive
"""

import argparse
import sys
import time
from typing import Optional

from .config import MonitorConfig
from .console import CommandConsole
from .errors import MonitorError
from .serial.port_manager import SerialTransport, enumerate_ports
from .session import Session, SessionCallbacks, SessionState
from .utils.constants import CSV_FILENAME, DEFAULT_BAUDRATE, DEFAULT_HZ
from .utils.logger import configure_logging


class SamplePrinter:
    """Prints every Nth sample (0 disables printing)."""

    def __init__(self, every: int = 1, out=None):
        self.every = every
        self.out = out if out is not None else sys.stdout
        self.count = 0

    def __call__(self, sample, bounds):
        self.count += 1
        if self.every and self.count % self.every == 0:
            print(f"{sample.time_ms:>10d} ms  {sample.distance_mm:>5d} mm", file=self.out)


def list_serial_ports():
    ports = enumerate_ports()
    if not ports:
        print("No serial ports found")
        return
    for name, description in ports:
        print(f"  {name:<24} {description}")


def print_summary(store):
    """Print count, span and distance statistics of the recording."""
    t_s, dist_cm = store.as_arrays()
    if dist_cm.size == 0:
        print("No samples recorded")
        return
    print(f"{dist_cm.size} samples over {t_s[-1] - t_s[0]:.1f} s: "
          f"min {dist_cm.min():.1f} cm, max {dist_cm.max():.1f} cm, "
          f"mean {dist_cm.mean():.1f} cm")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='vl53-monitor',
        description='Live monitor and CSV logger for a VL53L0X ranging sensor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    vl53-monitor --list-ports
    vl53-monitor --port /dev/ttyUSB0 --hz 25 --duration 30 --csv run1.csv
    vl53-monitor --port COM3 --interactive
        """
    )
    parser.add_argument('--port', '-p',
                        help='Serial port (default: the only available port)')
    parser.add_argument('--baudrate', '-b', type=int, default=DEFAULT_BAUDRATE,
                        choices=SerialTransport.BAUD_RATES,
                        help=f'Baud rate (default: {DEFAULT_BAUDRATE})')
    parser.add_argument('--hz', type=int, default=DEFAULT_HZ,
                        help=f'Sample rate 1-50 Hz (default: {DEFAULT_HZ})')
    parser.add_argument('--duration', '-d', type=float,
                        help='Recording duration in seconds (default: until Ctrl+C)')
    parser.add_argument('--csv', '-o', dest='csv_path',
                        help=f'CSV output path (default: {CSV_FILENAME})')
    parser.add_argument('--no-csv', action='store_true',
                        help='Do not write a CSV file on exit')
    parser.add_argument('--calibrate', type=float, metavar='CM',
                        help='Run offset calibration against a target at CM before starting')
    parser.add_argument('--ready-timeout', type=float, default=5.0,
                        help='Seconds to wait for "# READY" before calibrating (default: 5)')
    parser.add_argument('--interactive', '-i', action='store_true',
                        help='Read commands from stdin instead of recording unattended')
    parser.add_argument('--capacity', type=int,
                        help='Maximum number of samples kept (default: 10000)')
    parser.add_argument('--legacy', dest='accept_legacy', action='store_const',
                        const=True,
                        help='Accept bare "<mm>" lines from older firmware (default)')
    parser.add_argument('--no-legacy', dest='accept_legacy', action='store_const',
                        const=False,
                        help='Ignore bare "<mm>" lines from older firmware')
    parser.add_argument('--print-every', type=int, default=1, metavar='N',
                        help='Print every Nth sample, 0 for none (default: 1)')
    parser.add_argument('--list-ports', '-l', action='store_true',
                        help='List available serial ports and exit')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log level (default: WARNING)')
    parser.add_argument('--log-file', help='Also write the log to this file')
    return parser


def _record(session: Session, args) -> None:
    if args.calibrate is not None:
        if session.wait_for_state(SessionState.READY, SessionState.RUNNING,
                                  timeout=args.ready_timeout):
            session.calibrate(args.calibrate)
        else:
            print(f"Device not ready after {args.ready_timeout}s, skipping calibration")

    session.start(args.hz)

    deadline = None if args.duration is None else time.monotonic() + args.duration
    while deadline is None or time.monotonic() < deadline:
        if session.last_error is not None:
            break
        time.sleep(0.05)


def main(argv: Optional[list] = None) -> int:
    """
    Command-line interface.

    Entry point for the `vl53-monitor` command.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    if args.list_ports:
        list_serial_ports()
        return 0

    config = MonitorConfig.from_args(args)
    callbacks = SessionCallbacks(
        on_status=lambda state, text: print(f"[{text}]"),
        on_sample=SamplePrinter(args.print_every),
        on_error=lambda e: print(f"ERROR: {e}", file=sys.stderr),
    )
    session = Session(config, callbacks, transport_factory=SerialTransport)

    if not args.interactive:
        try:
            session.connect()
        except MonitorError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    try:
        if args.interactive:
            CommandConsole(session).run(sys.stdin)
        else:
            _record(session, args)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        if session.is_connected:
            session.stop()
        session.disconnect()

    if not args.no_csv and len(session.store):
        path = session.save_csv()
        print(f"Saved {path}")
    print_summary(session.store)

    return 0 if session.last_error is None else 1


if __name__ == "__main__":
    sys.exit(main())
