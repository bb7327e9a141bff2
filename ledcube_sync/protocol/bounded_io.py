"""
Deadline-bounded reads and writes over a Transport.

Each call runs the blocking transport operation on a single worker thread
and waits for it with a deadline proportional to the number of bytes. On
timeout the transport is told to cancel that direction only (a read timeout
never aborts a write and vice versa); the abandoned call is remembered
and the next call waits for it to drain (the fence) and flushes stale input
before touching the channel again.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional

from ledcube_sync.protocol.interface import Transport
from ledcube_sync.utils.exceptions import (
    ChannelBusyError,
    MalformedResultError,
    SerialTimeoutError,
)


logger = logging.getLogger(__name__)


class BoundedIO:
    """
    Timeout-bounded I/O against one transport.

    A read or write of N bytes waits at most N * seconds_per_byte. Not safe
    for concurrent use; the owning session runs one operation at a time.
    """

    DEFAULT_SECONDS_PER_BYTE = 1.0
    DEFAULT_FENCE_TIMEOUT = 2.0

    def __init__(
        self,
        transport: Transport,
        seconds_per_byte: float = DEFAULT_SECONDS_PER_BYTE,
        fence_timeout: float = DEFAULT_FENCE_TIMEOUT,
    ):
        """
        Args:
            transport: Open transport to drive.
            seconds_per_byte: Deadline per transferred byte.
            fence_timeout: Max wait for an abandoned call before the next one.
        """
        if seconds_per_byte <= 0:
            raise ValueError(f"seconds_per_byte must be positive, got {seconds_per_byte}")

        self._transport = transport
        self._seconds_per_byte = seconds_per_byte
        self._fence_timeout = fence_timeout
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cube-io")
        self._orphan: Optional[Future] = None
        self._orphan_cancel: Optional[Callable[[], None]] = None

    @property
    def seconds_per_byte(self) -> float:
        return self._seconds_per_byte

    @property
    def fenced(self) -> bool:
        """True while an abandoned call has not been drained yet."""
        return self._orphan is not None

    def deadline_for(self, length: int) -> float:
        return max(length, 1) * self._seconds_per_byte

    def write(self, data: bytes) -> None:
        """
        Write all bytes within len(data) * seconds_per_byte.

        Raises:
            SerialTimeoutError: If the write did not finish in time.
            ChannelBusyError: If a previous abandoned call is still running.
            TransportError: If the transport failed.
        """
        self._run(self._transport.write, self._transport.cancel_write, bytes(data), len(data), "write")

    def read(self, length: int) -> bytes:
        """
        Read exactly length bytes within length * seconds_per_byte.

        Raises:
            SerialTimeoutError: If the bytes did not arrive in time.
            MalformedResultError: If the transport returned a short read.
            ChannelBusyError: If a previous abandoned call is still running.
            TransportError: If the transport failed.
        """
        data = self._run(self._transport.read, self._transport.cancel_read, length, length, "read")
        if len(data) != length:
            raise MalformedResultError(f"Expected {length} bytes, got {len(data)}")
        return data

    def close(self) -> None:
        """Cancel anything in flight and release the worker thread."""
        if self._orphan is not None and not self._orphan.done():
            self._orphan_cancel()
        self._executor.shutdown(wait=False)
        self._orphan = None
        self._orphan_cancel = None

    def _run(self, operation: Callable, cancel: Callable[[], None], argument, length: int, what: str):
        self._fence()

        deadline = self.deadline_for(length)
        future = self._executor.submit(operation, argument)
        try:
            return future.result(timeout=deadline)
        except FutureTimeout:
            logger.warning(f"{what} of {length} byte(s) timed out after {deadline:.2f}s")
            cancel()
            self._orphan = future
            self._orphan_cancel = cancel
            raise SerialTimeoutError(
                f"Timeout: {what} of {length} byte(s) did not finish within {deadline:.2f}s"
            )

    def _fence(self) -> None:
        if self._orphan is None:
            return

        orphan = self._orphan
        try:
            orphan.exception(timeout=self._fence_timeout)
        except FutureTimeout:
            raise ChannelBusyError(
                f"Previous I/O still running after {self._fence_timeout:.2f}s, channel out of sync"
            )

        self._orphan = None
        self._orphan_cancel = None
        logger.debug("Abandoned I/O drained, flushing stale input")
        self._transport.reset_input_buffer()
