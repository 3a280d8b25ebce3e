"""
Command Protocol for the VL53L0X ranging firmware
=================================================

Commands are single ASCII lines sent host → device. The transport appends
the line terminator; ``encode()`` returns the bare command text.

Input (Host → Device):
    HELP              - Print command list, answered with "# READY"
    START hz=<1-50>   - Start continuous ranging at the given rate
    STOP              - Stop ranging
    RESET             - Clear device state, answered with "# RESET ..."
    CAL cm=<number>   - Offset calibration against a target at <number> cm
    RATE hz=<1-50>    - Change rate without restarting

Output (Device → Host):
    # READY / # START ... / # STOP ... / # RESET ... / # CAL OK ... / # OFFSET ...
    <t_ms>,<dist_mm>
"""

import math
from typing import Any, Optional

from ..utils.constants import DEFAULT_HZ, MAX_HZ, MIN_HZ


class Command:
    """Command words understood by the firmware."""
    HELP = "HELP"
    START = "START"      # hz=
    STOP = "STOP"
    RESET = "RESET"
    CAL = "CAL"          # cm=
    RATE = "RATE"        # hz=


# Parameter each command requires
_COMMAND_PARAMS = {
    Command.HELP: None,
    Command.START: "hz",
    Command.STOP: None,
    Command.RESET: None,
    Command.CAL: "cm",
    Command.RATE: "hz",
}


def clamp_hz(value: Any = None) -> int:
    """
    Normalize a requested sample rate

    Absent, empty, non-numeric, zero or NaN input falls back to the default
    rate; anything else is rounded and clamped to [MIN_HZ, MAX_HZ].

    Args:
        value: Rate as int, float or string (e.g. from a text field)

    Returns:
        int: Rate in Hz
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_HZ
    try:
        hz = float(value)
    except (TypeError, ValueError):
        return DEFAULT_HZ
    if math.isnan(hz) or hz == 0:
        return DEFAULT_HZ

    hz = max(MIN_HZ, min(MAX_HZ, hz))
    return int(round(hz))


def format_cm(value: Any) -> str:
    """
    Format a calibration distance

    Raises:
        ValueError: If the value is not a finite, non-negative number
    """
    try:
        cm = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid calibration distance: {value!r}")
    if not math.isfinite(cm) or cm < 0:
        raise ValueError(f"Invalid calibration distance: {value!r}")

    if cm.is_integer():
        return str(int(cm))
    return repr(cm)


def encode(command: str, hz: Optional[Any] = None, cm: Optional[Any] = None) -> str:
    """
    Build a command line

    Args:
        command: One of the ``Command`` words (case-insensitive)
        hz: Rate for START / RATE (clamped, defaults to 50)
        cm: Distance for CAL (required)

    Returns:
        str: Command text without line terminator

    Raises:
        ValueError: Unknown command or invalid CAL distance
    """
    word = str(command).strip().upper()
    if word not in _COMMAND_PARAMS:
        raise ValueError(f"Unknown command: {command!r}")

    param = _COMMAND_PARAMS[word]
    if param == "hz":
        return f"{word} hz={clamp_hz(hz)}"
    if param == "cm":
        return f"{word} cm={format_cm(cm)}"
    return word
