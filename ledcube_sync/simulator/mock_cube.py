"""
Simulated LED cube for running without hardware.

Behaves like the cube firmware's serial handler: echoes ACK, streams its
stored animations on 'g', replaces them on 's', erases them on 'd' and
answers anything else with the ERROR byte. It plugs in wherever a
Transport is expected.
"""

import logging
import threading
import time
from typing import Generator, List, Optional

from ledcube_sync.animation.models import Animation, AnimationSet, Frame
from ledcube_sync.config.models import SimulatorConfig
from ledcube_sync.protocol.constants import (
    ACK,
    ERROR,
    CMD_DOWNLOAD,
    CMD_UPLOAD,
    CMD_CLEAR,
    FINISH_MARKER,
    FRAME_SIZE,
)
from ledcube_sync.protocol.interface import Transport
from ledcube_sync.utils.exceptions import NotConnectedError


logger = logging.getLogger(__name__)

# Generator fed one received byte at a time
Handler = Generator[None, int, None]


class MockCubeDevice(Transport):
    """
    In-memory cube implementing the device side of the protocol.

    Every reply the cube sends is numbered from zero; a configured fault
    sabotages exactly one of them:

    - drop: the reply is never sent (host times out)
    - error: the ERROR byte is sent instead
    - corrupt: the first byte of the reply is inverted
    - truncate: the last byte of the reply is missing
    """

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        animations: Optional[AnimationSet] = None,
        name: str = "simulator",
    ):
        """
        Args:
            config: Simulator configuration (latency, fault).
            animations: Initial contents of the cube's memory.
            name: Channel name reported to the host.
        """
        self.config = config or SimulatorConfig()
        self._name = name
        self._store = animations or AnimationSet()
        self._open = False

        self._cond = threading.Condition()
        self._rx_buffer = bytearray()
        self._outbox: List[bytes] = []
        self._cancelled = False
        self._received = bytearray()
        self._waiting_readers = 0

        self._reply_index = 0
        self._fault_index = self.config.fault_reply_index
        self._fault_kind = self.config.fault_kind

        self.uploads = 0
        self.downloads = 0

        self._handler = self._start_handler()

        logger.info("MockCubeDevice initialized")

    # Transport interface

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        with self._cond:
            if self._open:
                logger.warning("Simulator already open")
                return
            self._open = True
            self._cancelled = False
        logger.info(f"Simulator connected ({len(self._store)} animation(s) stored)")

    def close(self) -> None:
        with self._cond:
            if not self._open:
                return
            self._open = False
            self._cond.notify_all()
        logger.info("Simulator disconnected")

    def write(self, data: bytes) -> int:
        with self._cond:
            if not self._open:
                raise NotConnectedError("Simulator not connected")
            for value in data:
                self._received.append(value)
                self._handler.send(value)
            replies, self._outbox = self._outbox, []

        if not replies:
            return len(data)

        if self.config.response_latency_ms > 0:
            time.sleep(self.config.response_latency_ms / 1000.0)

        with self._cond:
            for reply in replies:
                self._rx_buffer.extend(reply)
            self._cond.notify_all()

        return len(data)

    def read(self, length: int) -> bytes:
        with self._cond:
            if not self._open:
                raise NotConnectedError("Simulator not connected")

            self._waiting_readers += 1
            try:
                self._cond.wait_for(
                    lambda: len(self._rx_buffer) >= length or self._cancelled or not self._open
                )
            finally:
                self._waiting_readers -= 1
            self._cancelled = False

            data = bytes(self._rx_buffer[:length])
            del self._rx_buffer[:length]
            return data

    def cancel_read(self) -> None:
        with self._cond:
            if self._waiting_readers:
                self._cancelled = True
                self._cond.notify_all()

    def cancel_write(self) -> None:
        # Writes complete immediately; there is never one to abort
        pass

    def reset_input_buffer(self) -> None:
        with self._cond:
            self._rx_buffer.clear()
            self._cancelled = False

    # Simulator control

    @property
    def animations(self) -> AnimationSet:
        """Current contents of the cube's memory."""
        return self._store

    @animations.setter
    def animations(self, value: AnimationSet) -> None:
        self._store = value

    @property
    def received(self) -> bytes:
        """Every byte the host has written since the last reset."""
        with self._cond:
            return bytes(self._received)

    def set_fault(self, reply_index: Optional[int], kind: str = "drop") -> None:
        """
        Sabotage the reply with the given index, counted from now.

        Args:
            reply_index: Zero-based reply number, or None to disable faults.
            kind: drop, error, corrupt or truncate.
        """
        with self._cond:
            self._fault_index = reply_index
            self._fault_kind = kind
            self._reply_index = 0
        logger.info(f"[SIMULATOR] Fault set: {kind} at reply {reply_index}")

    def reset(self) -> None:
        """Power-cycle the cube: forget any half-finished transfer and all buffers."""
        with self._cond:
            self._handler = self._start_handler()
            self._rx_buffer.clear()
            self._outbox.clear()
            self._received.clear()
            self._cancelled = False
            self._reply_index = 0
        logger.info("[SIMULATOR] Reset")

    def status(self) -> dict:
        with self._cond:
            return {
                "connected": self._open,
                "animation_count": len(self._store),
                "frame_total": self._store.frame_total,
                "bytes_received": len(self._received),
                "uploads": self.uploads,
                "downloads": self.downloads,
                "fault_reply_index": self._fault_index,
                "fault_kind": self._fault_kind,
                "response_latency_ms": self.config.response_latency_ms,
            }

    # Device side of the protocol

    def _start_handler(self) -> Handler:
        handler = self._serial_handler()
        next(handler)
        return handler

    def _reply(self, data: bytes) -> None:
        index = self._reply_index
        self._reply_index += 1

        if index == self._fault_index:
            logger.warning(f"[SIMULATOR] Injecting {self._fault_kind} fault at reply {index}")
            if self._fault_kind == "drop":
                return
            if self._fault_kind == "error":
                data = bytes([ERROR])
            elif self._fault_kind == "corrupt":
                data = bytes([data[0] ^ 0xFF]) + data[1:]
            elif self._fault_kind == "truncate":
                data = data[:-1]

        self._outbox.append(data)

    def _serial_handler(self) -> Handler:
        while True:
            command = yield

            if command == ACK:
                self._reply(bytes([ACK]))
            elif command in (CMD_DOWNLOAD, ord("G")):
                yield from self._transmit_animations()
            elif command in (CMD_UPLOAD, ord("S")):
                yield from self._receive_animations()
            elif command in (CMD_CLEAR, ord("D")):
                self._store = AnimationSet()
                logger.info("[SIMULATOR] Memory cleared")
                self._reply(bytes([ACK]))
            else:
                logger.debug(f"[SIMULATOR] Unknown command 0x{command:02X}")
                self._reply(bytes([ERROR]))

    def _transmit_animations(self) -> Handler:
        snapshot = self._store
        self._reply(bytes([ACK]))

        self._reply(bytes([len(snapshot)]))
        if (yield) != ACK:
            return

        for animation in snapshot.animations:
            self._reply(bytes([len(animation)]))
            if (yield) != ACK:
                return

            for frame in animation.frames:
                self._reply(bytes([frame.duration]))
                if (yield) != ACK:
                    return
                self._reply(frame.payload)
                if (yield) != ACK:
                    return

        self.downloads += 1
        logger.info(f"[SIMULATOR] Sent {len(snapshot)} animation(s)")

    def _receive_animations(self) -> Handler:
        self._reply(bytes([ACK]))

        animation_count = yield
        self._reply(bytes([ACK]))

        animations = []
        for _ in range(animation_count):
            frame_count = yield
            self._reply(bytes([ACK]))

            frames = []
            for _ in range(frame_count):
                duration = yield
                self._reply(bytes([ACK]))

                pixels = []
                while len(pixels) < FRAME_SIZE:
                    pixels.append((yield))
                self._reply(bytes([ACK]))

                frames.append(Frame(duration=duration, pixels=pixels))
            animations.append(Animation(frames=frames))

        marker = bytearray()
        while len(marker) < len(FINISH_MARKER):
            marker.append((yield))

        if bytes(marker) != FINISH_MARKER:
            logger.warning(f"[SIMULATOR] Bad finish marker {marker.hex()}")
            self._reply(bytes([ERROR]))
            return

        self._store = AnimationSet(animations=animations)
        self.uploads += 1
        logger.info(f"[SIMULATOR] Stored {len(animations)} animation(s)")
        self._reply(bytes([ACK]))
