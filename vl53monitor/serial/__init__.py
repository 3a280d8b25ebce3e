"""
Serial communication for the VL53L0X monitor

Handles line framing, line classification, command encoding and the
pyserial transport.
"""

from .commands import Command, clamp_hz, encode
from .framer import LineFramer
from .port_manager import SerialTransport, enumerate_ports, select_port
from .protocol import Data, IgnoreReason, Ignored, Meta, MetaKind, classify

__all__ = [
    'Command',
    'clamp_hz',
    'encode',
    'LineFramer',
    'SerialTransport',
    'enumerate_ports',
    'select_port',
    'Data',
    'IgnoreReason',
    'Ignored',
    'Meta',
    'MetaKind',
    'classify',
]
