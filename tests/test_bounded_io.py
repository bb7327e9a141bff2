"""Tests for deadline-bounded transport I/O."""

import threading
import time

import pytest

from ledcube_sync.protocol.bounded_io import BoundedIO
from ledcube_sync.protocol.interface import Transport
from ledcube_sync.utils.exceptions import (
    ChannelBusyError,
    MalformedResultError,
    SerialTimeoutError,
    TransportError,
)


class ScriptedTransport(Transport):
    """Transport whose reads block until data is queued or cancel_read() is called."""

    def __init__(self, honour_cancel=True, write_stall=0.0):
        self.honour_cancel = honour_cancel
        self.write_stall = write_stall
        self.written = bytearray()
        self.cancel_read_calls = 0
        self.cancel_write_calls = 0
        self.flush_calls = 0
        self.release = threading.Event()
        self._cond = threading.Condition()
        self._buffer = bytearray()
        self._cancelled = False
        self.fail_with = None

    @property
    def name(self):
        return "scripted"

    @property
    def is_open(self):
        return True

    def open(self):
        pass

    def close(self):
        self.release.set()

    def feed(self, data):
        with self._cond:
            self._buffer.extend(data)
            self._cond.notify_all()

    def write(self, data):
        if self.fail_with:
            raise self.fail_with
        if self.write_stall:
            stall, self.write_stall = self.write_stall, 0.0
            time.sleep(stall)
        self.written.extend(data)
        return len(data)

    def read(self, length):
        if not self.honour_cancel:
            self.release.wait(5)
            return b""
        with self._cond:
            self._cond.wait_for(lambda: len(self._buffer) >= length or self._cancelled, timeout=5)
            self._cancelled = False
            data = bytes(self._buffer[:length])
            del self._buffer[:length]
            return data

    def cancel_write(self):
        self.cancel_write_calls += 1

    def cancel_read(self):
        self.cancel_read_calls += 1
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def reset_input_buffer(self):
        self.flush_calls += 1
        with self._cond:
            self._buffer.clear()


@pytest.fixture
def transport():
    t = ScriptedTransport()
    yield t
    t.close()


def test_read_returns_exact_bytes(transport):
    io = BoundedIO(transport, seconds_per_byte=0.5)
    transport.feed(b"\x01\x02\x03")
    assert io.read(3) == b"\x01\x02\x03"
    io.close()


def test_write_passes_bytes_through(transport):
    io = BoundedIO(transport, seconds_per_byte=0.5)
    io.write(b"abc")
    assert bytes(transport.written) == b"abc"
    io.close()


def test_deadline_is_proportional_to_length(transport):
    io = BoundedIO(transport, seconds_per_byte=0.25)
    assert io.deadline_for(1) == pytest.approx(0.25)
    assert io.deadline_for(64) == pytest.approx(16.0)
    io.close()


def test_read_times_out_and_cancels(transport):
    io = BoundedIO(transport, seconds_per_byte=0.05)

    start = time.monotonic()
    with pytest.raises(SerialTimeoutError):
        io.read(2)
    elapsed = time.monotonic() - start

    assert elapsed < 1.0
    assert transport.cancel_read_calls == 1
    assert transport.cancel_write_calls == 0
    assert io.fenced
    io.close()


def test_fence_flushes_stale_input_before_next_call(transport):
    io = BoundedIO(transport, seconds_per_byte=0.05)
    with pytest.raises(SerialTimeoutError):
        io.read(1)

    # A late byte from the aborted exchange must not leak into the next read
    transport.feed(b"\x99")
    io.write(b"\x42")

    assert transport.flush_calls == 1
    assert not io.fenced
    transport.feed(b"\x07")
    assert io.read(1) == b"\x07"
    io.close()


def test_stuck_orphan_blocks_next_call():
    transport = ScriptedTransport(honour_cancel=False)
    io = BoundedIO(transport, seconds_per_byte=0.05, fence_timeout=0.1)

    with pytest.raises(SerialTimeoutError):
        io.read(1)
    with pytest.raises(ChannelBusyError):
        io.write(b"\x42")

    transport.release.set()
    io.write(b"\x42")
    assert bytes(transport.written) == b"\x42"
    io.close()


def test_short_read_is_malformed(transport):
    """A cancelled read that returns partial data is not silently accepted."""
    class ShortTransport(ScriptedTransport):
        def read(self, length):
            return b"\x00" * (length - 1)

    io = BoundedIO(ShortTransport(), seconds_per_byte=0.5)
    with pytest.raises(MalformedResultError):
        io.read(64)
    io.close()


def test_transport_errors_propagate(transport):
    transport.fail_with = TransportError("port vanished")
    io = BoundedIO(transport, seconds_per_byte=0.5)
    with pytest.raises(TransportError):
        io.write(b"\x42")
    io.close()


def test_rejects_non_positive_deadline(transport):
    with pytest.raises(ValueError):
        BoundedIO(transport, seconds_per_byte=0)


def test_write_timeout_cancels_only_the_write():
    transport = ScriptedTransport(write_stall=0.3)
    io = BoundedIO(transport, seconds_per_byte=0.05)

    with pytest.raises(SerialTimeoutError):
        io.write(b"g")
    assert transport.cancel_write_calls == 1
    assert transport.cancel_read_calls == 0

    io.write(b"\x42")
    transport.feed(b"\x42")
    assert io.read(1) == b"\x42"
    io.close()
    transport.close()


def test_close_cancels_the_stuck_direction(transport):
    io = BoundedIO(transport, seconds_per_byte=0.05)
    with pytest.raises(SerialTimeoutError):
        io.read(1)
    io.close()
    assert transport.cancel_read_calls >= 1
    assert transport.cancel_write_calls == 0
