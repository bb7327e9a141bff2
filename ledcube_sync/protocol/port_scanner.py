"""
Serial port listing and cube auto-discovery.

A port hosts a cube if a single ACK sent to it is echoed within the scan
deadline. Ports that cannot be opened are skipped quietly.
"""

import logging
import time
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional

import serial.tools.list_ports

from ledcube_sync.config.models import SerialConfig
from ledcube_sync.protocol.engine import CubeSession
from ledcube_sync.protocol.serial_transport import SerialTransport
from ledcube_sync.utils.exceptions import DriverError


logger = logging.getLogger(__name__)

BLUETOOTH_MARKERS = ("bluetooth", "bth")


@dataclass
class PortInfo:
    name: str
    description: str
    hardware_id: str
    is_bluetooth: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DiscoveredCube:
    """A port on which a cube answered the probe."""

    port: str
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


def list_available_ports(include_bluetooth: bool = True) -> List[PortInfo]:
    """
    Serial ports known to the operating system, sorted by name.

    Bluetooth virtual ports are slow to open and never host a cube over
    USB; pass include_bluetooth=False to leave them out.
    """
    ports = []
    for entry in serial.tools.list_ports.comports():
        description = entry.description or "Unknown"
        is_bluetooth = any(marker in description.lower() for marker in BLUETOOTH_MARKERS)
        if is_bluetooth and not include_bluetooth:
            continue
        ports.append(PortInfo(entry.device, description, entry.hwid or "", is_bluetooth))

    ports.sort(key=lambda p: p.name)
    logger.debug(f"Found {len(ports)} serial port(s)")
    return ports


def scan_for_cube(
    config: Optional[SerialConfig] = None,
    skip_ports: Optional[Iterable[str]] = None,
    include_bluetooth: bool = False,
) -> List[DiscoveredCube]:
    """
    Probe every port and return the ones with a cube, in port order.

    The probe uses config.scan_seconds_per_byte rather than the transfer
    deadline so that silent ports are passed over quickly.
    """
    config = config or SerialConfig()
    skip = set(skip_ports or ())

    candidates = [p for p in list_available_ports(include_bluetooth) if p.name not in skip]
    logger.info(f"Scanning {len(candidates)} port(s) for LED cubes")

    started = time.monotonic()
    found = [
        DiscoveredCube(port=p.name, description=p.description)
        for p in candidates
        if _probe_port(p.name, config)
    ]
    elapsed = time.monotonic() - started

    for cube in found:
        logger.info(f"LED cube answered on {cube.port}")
    logger.info(f"Scan finished in {elapsed:.1f}s: {len(found)} cube(s)")
    return found


def find_first_cube(config: Optional[SerialConfig] = None) -> Optional[DiscoveredCube]:
    """First cube found by scan_for_cube(), or None."""
    cubes = scan_for_cube(config)
    if not cubes:
        logger.warning("No LED cube answered on any serial port")
        return None
    if len(cubes) > 1:
        logger.warning(f"{len(cubes)} cubes found, using {cubes[0].port}")
    return cubes[0]


def _probe_port(port_name: str, config: SerialConfig) -> bool:
    probe_config = config.model_copy(
        update={"port": port_name, "seconds_per_byte": config.scan_seconds_per_byte}
    )
    try:
        session = CubeSession.open(SerialTransport(probe_config), probe_config, notifier=_quiet_notifier)
    except DriverError as e:
        logger.debug(f"Skipping {port_name}: {e}")
        return False

    with session:
        return session.probe()


def _quiet_notifier(title: str, message: str) -> None:
    logger.debug(f"{title}: {message}")
