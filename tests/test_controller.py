"""Tests for the cube controller."""

import threading
import time

import pytest

from ledcube_sync.config.models import SerialConfig, SimulatorConfig
from ledcube_sync.cube.controller import CubeController
from ledcube_sync.simulator.mock_cube import MockCubeDevice
from ledcube_sync.utils.exceptions import NotConnectedError, PortNotFoundError

from conftest import FAST_SECONDS_PER_BYTE


@pytest.fixture
def device():
    return MockCubeDevice()


@pytest.fixture
def controller(device):
    c = CubeController(lambda: device, SerialConfig(seconds_per_byte=FAST_SECONDS_PER_BYTE))
    c.connect()
    yield c
    c.disconnect()


def test_connect_opens_transport(controller, device):
    assert controller.connected
    assert device.is_open
    assert controller.port_name == "simulator"


def test_disconnect_closes_transport(controller, device):
    controller.disconnect()
    assert not controller.connected
    assert not device.is_open


def test_operations_require_session(device):
    controller = CubeController(lambda: device)
    with pytest.raises(NotConnectedError):
        controller.probe()
    with pytest.raises(NotConnectedError):
        controller.download()


def test_connect_failure_leaves_disconnected():
    class MissingPort(MockCubeDevice):
        def open(self):
            raise PortNotFoundError("Failed to open /dev/ttyNOPE: Port not found")

    controller = CubeController(MissingPort)
    with pytest.raises(PortNotFoundError):
        controller.connect()
    assert not controller.connected


def test_round_trip_records_transfer(controller, sample_set):
    assert controller.upload(sample_set) is True
    assert controller.status()["last_transfer"]["kind"] == "upload"

    assert controller.download() == sample_set
    last = controller.status()["last_transfer"]
    assert last["kind"] == "download"
    assert last["animation_count"] == 3
    assert last["frame_total"] == 5


def test_failure_is_recorded(device):
    external = []
    controller = CubeController(
        lambda: device,
        SerialConfig(seconds_per_byte=FAST_SECONDS_PER_BYTE),
        notifier=lambda title, message: external.append(title),
    )
    controller.connect()

    device.set_fault(0, "error")
    assert controller.probe() is False

    status = controller.status()
    assert status["last_error_type"] == "DeviceErrorResponse"
    assert status["notification_count"] == 1
    assert controller.notifications[0]["title"] == "Probe failed"
    assert external == ["Probe failed"]
    controller.disconnect()


def test_clear(controller, device, sample_set):
    device.animations = sample_set
    assert controller.clear() is True
    assert len(device.animations) == 0


def test_status_answers_during_transfer():
    """History reads do not wait behind a running transfer."""
    slow = MockCubeDevice(SimulatorConfig(response_latency_ms=400))
    controller = CubeController(lambda: slow, SerialConfig(seconds_per_byte=2.0))
    controller.connect()
    try:
        worker = threading.Thread(target=controller.probe)
        worker.start()
        time.sleep(0.1)
        assert worker.is_alive()

        started = time.monotonic()
        status = controller.status()
        assert controller.notifications == []
        assert time.monotonic() - started < 0.2
        assert status["connected"] is True

        worker.join(2.0)
        assert not worker.is_alive()
    finally:
        controller.disconnect()
