"""
Monitor configuration

A single dataclass holding everything the session, store and CLI can be
tuned with. Defaults come from ``utils.constants``.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .utils.constants import (
    BOOT_NOISE_PREFIXES,
    CANCEL_TIMEOUT_S,
    CSV_FILENAME,
    DEFAULT_BAUDRATE,
    DEFAULT_HZ,
    MAX_POINTS,
    X_SPAN_DEFAULT_MS,
    Y_INIT_MAX_MM,
    Y_STEP_LADDER,
)


@dataclass
class MonitorConfig:
    """
    Settings for one monitor session.

    Attributes:
        port: Serial device; None auto-selects the only available port
        baudrate: Serial baud rate
        default_hz: Rate requested when ``start()`` gets no rate
        capacity: Maximum number of recorded samples
        x_span_ms: Width of the sliding chart window
        y_initial_max_mm: Y axis maximum before any sample exceeds it
        y_step_ladder: Steps the Y maximum snaps up to
        boot_noise_prefixes: Bootloader line prefixes to drop
        accept_legacy: Accept bare ``<mm>`` lines timestamped by the session clock
        clear_on_connect: Drop the previous recording when connecting
        cancel_timeout: Seconds to wait for the read thread on disconnect
        csv_path: Default export path
    """
    port: Optional[str] = None
    baudrate: int = DEFAULT_BAUDRATE
    default_hz: int = DEFAULT_HZ
    capacity: int = MAX_POINTS
    x_span_ms: int = X_SPAN_DEFAULT_MS
    y_initial_max_mm: int = Y_INIT_MAX_MM
    y_step_ladder: Tuple[int, ...] = Y_STEP_LADDER
    boot_noise_prefixes: Tuple[str, ...] = BOOT_NOISE_PREFIXES
    accept_legacy: bool = True
    clear_on_connect: bool = True
    cancel_timeout: float = CANCEL_TIMEOUT_S
    csv_path: str = CSV_FILENAME

    @classmethod
    def from_args(cls, args) -> 'MonitorConfig':
        """
        Build from an argparse namespace

        Attributes missing from the namespace keep their defaults.
        """
        config = cls()
        for name in ('port', 'baudrate', 'capacity', 'accept_legacy',
                     'cancel_timeout', 'csv_path'):
            value = getattr(args, name, None)
            if value is not None:
                setattr(config, name, value)

        hz = getattr(args, 'hz', None)
        if hz is not None:
            config.default_hz = hz
        return config
