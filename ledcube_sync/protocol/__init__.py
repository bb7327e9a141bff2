"""
Protocol package for LED cube serial communication.
"""

from ledcube_sync.protocol.interface import Transport
from ledcube_sync.protocol.serial_transport import SerialTransport
from ledcube_sync.protocol.bounded_io import BoundedIO
from ledcube_sync.protocol.engine import CubeSession, ErrorNotifier, log_notifier
from ledcube_sync.protocol.encoder import encode_count, encode_frame, decode_frame
from ledcube_sync.protocol.port_scanner import (
    PortInfo,
    DiscoveredCube,
    list_available_ports,
    scan_for_cube,
    find_first_cube,
)

__all__ = [
    "Transport",
    "SerialTransport",
    "BoundedIO",
    "CubeSession",
    "ErrorNotifier",
    "log_notifier",
    "encode_count",
    "encode_frame",
    "decode_frame",
    "PortInfo",
    "DiscoveredCube",
    "list_available_ports",
    "scan_for_cube",
    "find_first_cube",
]
