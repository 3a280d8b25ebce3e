"""
Line classifier for the VL53L0X ASCII protocol

Each framed line from the device is one of:
- Boot noise from the ESP32 ROM (``ESP-ROM:...``) - discarded
- Meta/status lines starting with ``#`` (``# READY``, ``# START hz=50``, ...)
- Data lines ``<t_ms>,<dist_mm>`` (canonical wire format)
- A bare ``<dist_mm>`` integer (legacy firmware, no device timestamp)

Classification is a pure function of the line; timestamps for legacy lines
are filled in by the session from its own clock.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence, Union

from ..utils.constants import BOOT_NOISE_PREFIXES


DATA_PATTERN = re.compile(r"^(\d+)\s*,\s*(\d+)", re.ASCII)
BARE_PATTERN = re.compile(r"^\d+$", re.ASCII)
START_HZ_PATTERN = re.compile(r"hz\s*=\s*(\d+)", re.IGNORECASE)


class MetaKind(IntEnum):
    """Recognized ``#`` status lines"""
    OTHER = 0
    READY = 1   # "# READY" - firmware answered the HELP handshake
    START = 2   # "# START ..." - measurement running
    STOP = 3    # "# STOP ..."
    RESET = 4   # "# RESET ..."
    CAL = 5     # "# CAL OK ..." / "# OFFSET ..."


class IgnoreReason(IntEnum):
    """Why a line was not used"""
    EMPTY = 0
    BOOT_NOISE = 1
    UNRECOGNIZED = 2


# Checked in order; first prefix match wins
META_PREFIXES = (
    ("# READY", MetaKind.READY),
    ("# START", MetaKind.START),
    ("# STOP", MetaKind.STOP),
    ("# RESET", MetaKind.RESET),
    ("# CAL OK", MetaKind.CAL),
    ("# OFFSET", MetaKind.CAL),
)


@dataclass(frozen=True)
class Ignored:
    """Line carrying nothing the session acts on"""
    line: str
    reason: IgnoreReason


@dataclass(frozen=True)
class Meta:
    """Status line; ``payload`` is the line verbatim"""
    payload: str
    kind: MetaKind = MetaKind.OTHER


@dataclass(frozen=True)
class Data:
    """
    One measurement

    ``time_ms`` is None for legacy bare-mm lines.
    """
    distance_mm: int
    time_ms: Optional[int] = None

    @property
    def is_legacy(self) -> bool:
        return self.time_ms is None


Classification = Union[Ignored, Meta, Data]


def meta_kind(line: str) -> MetaKind:
    """Match a ``#`` line against the known status prefixes"""
    for prefix, kind in META_PREFIXES:
        if line.startswith(prefix):
            return kind
    return MetaKind.OTHER


def classify(line: str,
             boot_prefixes: Sequence[str] = BOOT_NOISE_PREFIXES) -> Classification:
    """
    Classify one framed line

    Args:
        line: Line without terminator
        boot_prefixes: Prefixes of bootloader lines to drop silently

    Returns:
        ``Ignored``, ``Meta`` or ``Data``
    """
    if not line.strip():
        return Ignored(line, IgnoreReason.EMPTY)

    for prefix in boot_prefixes:
        if line.startswith(prefix):
            return Ignored(line, IgnoreReason.BOOT_NOISE)

    if line.startswith("#"):
        return Meta(line, meta_kind(line))

    match = DATA_PATTERN.match(line)
    if match:
        return Data(time_ms=int(match.group(1)), distance_mm=int(match.group(2)))

    bare = line.strip()
    if BARE_PATTERN.match(bare):
        return Data(distance_mm=int(bare))

    return Ignored(line, IgnoreReason.UNRECOGNIZED)


def parse_start_hz(payload: str) -> Optional[int]:
    """
    Extract the rate from a ``# START hz=<n>`` status line

    Returns:
        The rate, or None if the line does not carry one
    """
    match = START_HZ_PATTERN.search(payload)
    if match:
        return int(match.group(1))
    return None
