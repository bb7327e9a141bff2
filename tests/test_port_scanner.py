"""Tests for port enumeration and cube discovery."""

from types import SimpleNamespace

import pytest

from ledcube_sync.config.models import SerialConfig
from ledcube_sync.protocol import port_scanner
from ledcube_sync.simulator.mock_cube import MockCubeDevice
from ledcube_sync.utils.exceptions import PortNotFoundError


FAKE_PORTS = [
    SimpleNamespace(device="/dev/ttyUSB1", description="FT232R USB UART", hwid="USB VID:PID=0403:6001"),
    SimpleNamespace(device="/dev/ttyS0", description="Bluetooth serial", hwid=""),
    SimpleNamespace(device="/dev/ttyUSB0", description=None, hwid=None),
]


@pytest.fixture
def fake_ports(monkeypatch):
    monkeypatch.setattr(port_scanner.serial.tools.list_ports, "comports", lambda: FAKE_PORTS)


def test_list_available_ports(fake_ports):
    ports = port_scanner.list_available_ports()
    assert [p.name for p in ports] == ["/dev/ttyS0", "/dev/ttyUSB0", "/dev/ttyUSB1"]
    assert ports[0].is_bluetooth
    assert ports[1].description == "Unknown"


def test_list_without_bluetooth(fake_ports):
    names = [p.name for p in port_scanner.list_available_ports(include_bluetooth=False)]
    assert "/dev/ttyS0" not in names


def test_scan_finds_answering_port(fake_ports, monkeypatch):
    """Only /dev/ttyUSB1 has a cube; /dev/ttyUSB0 cannot be opened."""

    class FakeSerialTransport(MockCubeDevice):
        def __init__(self, config):
            super().__init__(name=config.port)
            self.port = config.port

        def open(self):
            if self.port == "/dev/ttyUSB0":
                raise PortNotFoundError("Port not found")
            super().open()

    monkeypatch.setattr(port_scanner, "SerialTransport", FakeSerialTransport)

    cubes = port_scanner.scan_for_cube(SerialConfig(scan_seconds_per_byte=0.1))
    assert [c.port for c in cubes] == ["/dev/ttyUSB1"]

    first = port_scanner.find_first_cube(SerialConfig(scan_seconds_per_byte=0.1))
    assert first.port == "/dev/ttyUSB1"


def test_scan_skips_ports(fake_ports, monkeypatch):
    monkeypatch.setattr(port_scanner, "SerialTransport", lambda config: MockCubeDevice(name=config.port))
    cubes = port_scanner.scan_for_cube(SerialConfig(scan_seconds_per_byte=0.1), skip_ports=["/dev/ttyUSB1"])
    assert [c.port for c in cubes] == ["/dev/ttyUSB0"]
