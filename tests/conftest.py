"""Shared fixtures: a simulated cube and sessions with short deadlines."""

import pytest

from ledcube_sync.animation.models import Animation, AnimationSet, Frame
from ledcube_sync.protocol.engine import CubeSession
from ledcube_sync.protocol.logger import get_protocol_logger
from ledcube_sync.simulator.mock_cube import MockCubeDevice

# Short enough to keep injected timeouts quick, long enough for thread hand-off
FAST_SECONDS_PER_BYTE = 0.1


class NotificationRecorder:
    """Notification sink that remembers every (title, message) pair."""

    def __init__(self):
        self.calls = []

    def __call__(self, title, message):
        self.calls.append((title, message))


@pytest.fixture(autouse=True)
def clean_protocol_log():
    get_protocol_logger().clear()
    yield
    get_protocol_logger().clear()


@pytest.fixture
def notifications():
    return NotificationRecorder()


@pytest.fixture
def cube():
    device = MockCubeDevice()
    device.open()
    yield device
    device.close()


@pytest.fixture
def session(cube, notifications):
    s = CubeSession(cube, seconds_per_byte=FAST_SECONDS_PER_BYTE, notifier=notifications)
    yield s
    s.close()


def make_frame(duration, seed=0):
    return Frame(duration=duration, pixels=[(seed * 7 + i * 13) % 256 for i in range(64)])


@pytest.fixture
def sample_set():
    """Three animations of varied shape, including an empty one."""
    return AnimationSet(animations=[
        Animation(frames=[make_frame(5, 1), make_frame(10, 2), make_frame(255, 3)]),
        Animation(frames=[]),
        Animation(frames=[Frame.blank(0), make_frame(1, 4)]),
    ])


@pytest.fixture
def scenario_set():
    """Two animations: one frame of 64 zero bytes shown for 5 ticks, then an empty one."""
    return AnimationSet(animations=[
        Animation(frames=[Frame(duration=5, pixels=[0] * 64)]),
        Animation(frames=[]),
    ])
