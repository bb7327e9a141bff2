"""
LED cube protocol engine.

The protocol is fully lock-step: every unit either side sends is confirmed
with a single ACK byte before the next unit goes out. There is no framing
or checksum, so the only recovery from a timeout or an unexpected byte is to
abandon the whole transfer.

Download ('g'):
    host 'g'        -> cube ACK
    cube N          -> host ACK                  (animation count)
    per animation:
      cube M        -> host ACK                  (frame count)
      per frame:
        cube dur    -> host ACK
        cube 64 B   -> host ACK

Upload ('s'):
    host 's'        -> cube ACK
    host N          -> cube ACK
    per animation:
      host M        -> cube ACK
      per frame:
        host dur    -> cube ACK
        host 64 B   -> cube ACK
    host ACK x4     -> cube ACK                  (finish marker)
"""

import logging
from typing import Callable, List, Optional, TypeVar

from ledcube_sync.animation.models import Animation, AnimationSet, Frame
from ledcube_sync.config.models import SerialConfig
from ledcube_sync.protocol.bounded_io import BoundedIO
from ledcube_sync.protocol.constants import (
    ACK,
    ERROR,
    CMD_DOWNLOAD,
    CMD_UPLOAD,
    CMD_CLEAR,
    DURATION_SIZE,
    FINISH_MARKER,
    FRAME_SIZE,
)
from ledcube_sync.protocol.encoder import decode_frame, encode_count, encode_frame
from ledcube_sync.protocol.interface import Transport
from ledcube_sync.protocol.logger import get_protocol_logger
from ledcube_sync.utils.exceptions import (
    CubeException,
    DeviceErrorResponse,
    ProtocolMismatchError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorNotifier = Callable[[str, str], None]


def log_notifier(title: str, message: str) -> None:
    """Default notification sink: report through the logging system."""
    logger.error(f"{title}: {message}")


class CubeSession:
    """
    One protocol session with one cube over one transport.

    The session owns the transport: it is opened by CubeSession.open() (or
    by the caller before construction) and closed by close(). Operations
    return plain results (bool / AnimationSet / None); on failure the
    notifier is called exactly once and the typed error is kept in
    last_error for callers that want details.

    Not thread-safe: callers must not run two operations at once.
    """

    def __init__(
        self,
        transport: Transport,
        seconds_per_byte: float = BoundedIO.DEFAULT_SECONDS_PER_BYTE,
        fence_timeout: float = BoundedIO.DEFAULT_FENCE_TIMEOUT,
        notifier: Optional[ErrorNotifier] = None,
    ):
        """
        Args:
            transport: Already open transport.
            seconds_per_byte: Per-byte I/O deadline.
            fence_timeout: Max wait for a timed-out call to drain.
            notifier: Called as notifier(title, message) on each failure.
        """
        self._transport = transport
        self._io = BoundedIO(transport, seconds_per_byte, fence_timeout)
        self._notifier = notifier or log_notifier
        self._last_error: Optional[CubeException] = None
        self._protocol_logger = get_protocol_logger()

    @classmethod
    def open(
        cls,
        transport: Transport,
        config: Optional[SerialConfig] = None,
        notifier: Optional[ErrorNotifier] = None,
    ) -> "CubeSession":
        """
        Open the transport and wrap it in a session.

        Raises:
            PortNotFoundError, PortInUseError: If the transport cannot be opened.
        """
        config = config or SerialConfig()
        transport.open()
        return cls(
            transport,
            seconds_per_byte=config.seconds_per_byte,
            fence_timeout=config.fence_timeout_seconds,
            notifier=notifier,
        )

    def close(self) -> None:
        self._io.close()
        self._transport.close()

    def __enter__(self) -> "CubeSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def last_error(self) -> Optional[CubeException]:
        """Error of the most recent failed operation, cleared on success."""
        return self._last_error

    # Public operations

    def probe(self) -> bool:
        """
        Check that a cube answers on this channel.

        Returns:
            True if the cube echoed ACK, False otherwise (one notification).
        """
        return self._execute("Probe", self._probe) is True

    def download(self) -> Optional[AnimationSet]:
        """
        Fetch every animation stored on the cube.

        Returns:
            The complete AnimationSet, or None on any failure. Partially
            received data is never returned.
        """
        return self._execute("Download", self._download)

    def upload(self, animations: AnimationSet) -> bool:
        """
        Replace the cube's animations with the given set.

        The cube's contents after a failed upload are undefined; nothing is
        resent or rolled back.

        Returns:
            True on success, False on any failure.
        """
        return self._execute("Upload", lambda: self._upload(animations)) is True

    def clear(self) -> bool:
        """
        Erase all animations stored on the cube.

        Returns:
            True on success, False on any failure.
        """
        return self._execute("Clear", self._clear) is True

    # Protocol sequences

    def _probe(self) -> bool:
        self._send(bytes([ACK]), "probe")
        self._expect_ack("probe")
        return True

    def _download(self) -> AnimationSet:
        self._send(bytes([CMD_DOWNLOAD]), "download command")
        self._expect_ack("download command")

        animation_count = self._receive(1, "animation count")[0]
        self._send_ack("animation count")
        logger.debug(f"Cube reports {animation_count} animation(s)")

        animations: List[Animation] = []
        for a in range(animation_count):
            frame_count = self._receive(1, f"frame count of animation {a}")[0]
            self._send_ack(f"frame count of animation {a}")

            frames: List[Frame] = []
            for f in range(frame_count):
                step = f"animation {a} frame {f}"
                duration = self._receive(DURATION_SIZE, f"{step} duration")
                self._send_ack(f"{step} duration")
                payload = self._receive(FRAME_SIZE, f"{step} pixels")
                self._send_ack(f"{step} pixels")
                frames.append(decode_frame(duration, payload))

            animations.append(Animation(frames=frames))

        return AnimationSet(animations=animations)

    def _upload(self, animations: AnimationSet) -> bool:
        self._send(bytes([CMD_UPLOAD]), "upload command")
        self._expect_ack("upload command")

        self._send(encode_count(len(animations)), "animation count")
        self._expect_ack("animation count")

        for a, animation in enumerate(animations.animations):
            self._send(encode_count(len(animation)), f"frame count of animation {a}")
            self._expect_ack(f"frame count of animation {a}")

            for f, frame in enumerate(animation.frames):
                step = f"animation {a} frame {f}"
                duration, payload = encode_frame(frame)
                self._send(duration, f"{step} duration")
                self._expect_ack(f"{step} duration")
                self._send(payload, f"{step} pixels")
                self._expect_ack(f"{step} pixels")

        self._send(FINISH_MARKER, "finish marker")
        self._expect_ack("finish marker")
        return True

    def _clear(self) -> bool:
        self._send(bytes([CMD_CLEAR]), "clear command")
        self._expect_ack("clear command")
        return True

    # Unit helpers

    def _send(self, data: bytes, step: str) -> None:
        self._protocol_logger.log_tx(data, step)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"TX [{step}]: {data.hex(' ').upper()}")
        self._io.write(data)

    def _send_ack(self, step: str) -> None:
        self._send(bytes([ACK]), f"ACK for {step}")

    def _receive(self, length: int, step: str) -> bytes:
        data = self._io.read(length)
        self._protocol_logger.log_rx(data, step)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"RX [{step}]: {data.hex(' ').upper()}")
        return data

    def _expect_ack(self, step: str) -> None:
        received = self._receive(1, f"ACK for {step}")[0]
        if received == ACK:
            return
        if received == ERROR:
            raise DeviceErrorResponse(f"Cube reported an error after {step}", received)
        raise ProtocolMismatchError(
            f"Expected ACK (0x{ACK:02X}) after {step}, got 0x{received:02X}", received
        )

    def _execute(self, title: str, operation: Callable[[], T]) -> Optional[T]:
        """Run one operation, turning any protocol failure into None plus one notification."""
        logger.info(f"{title} on {self._transport.name} started")
        try:
            result = operation()
        except CubeException as e:
            self._last_error = e
            self._protocol_logger.log_error(str(e))
            logger.debug(f"{title} on {self._transport.name} aborted: {type(e).__name__}")
            self._notifier(f"{title} failed", str(e))
            return None

        self._last_error = None
        logger.info(f"{title} on {self._transport.name} finished")
        return result
