"""
Serial transport for real LED cube hardware.

Implements Transport using pyserial. Reads and writes block without a
port-level timeout; deadlines are enforced one layer up by BoundedIO, which
calls cancel_read() or cancel_write() for whichever call overran.

On POSIX pyserial aborts a blocked call by writing to a private pipe. If the
call finished on its own just before the abort, the pipe byte stays behind
and the next call of that direction returns early. Each call here carries
its own cancel flag, so such an early return is retried instead of being
reported as a short read.
"""

import logging
import threading
from typing import Optional

import serial
from serial import SerialException

from ledcube_sync.protocol.interface import Transport
from ledcube_sync.config.models import SerialConfig
from ledcube_sync.utils.exceptions import (
    NotConnectedError,
    PortNotFoundError,
    PortInUseError,
    TransportError,
)


logger = logging.getLogger(__name__)


class SerialTransport(Transport):
    """
    pyserial-backed transport.

    The cube firmware configures its UART as 8 data bits, no parity and one
    stop bit; only the baud rate is configurable.
    """

    DATA_BITS = serial.EIGHTBITS
    PARITY = serial.PARITY_NONE
    STOP_BITS = serial.STOPBITS_ONE

    def __init__(self, config: SerialConfig):
        """
        Initialize serial transport.

        Args:
            config: Serial port configuration.
        """
        self._config = config
        self._port: Optional[serial.Serial] = None
        self._read_cancelled = threading.Event()
        self._write_cancelled = threading.Event()

    @property
    def name(self) -> str:
        return self._config.port

    @property
    def is_open(self) -> bool:
        return self._port is not None and self._port.is_open

    def open(self) -> None:
        """Open the serial port."""
        if self.is_open:
            logger.warning(f"{self.name} already open")
            return

        port_name = self._config.port
        logger.info(f"Opening serial port {port_name} at {self._config.baud} baud")

        try:
            self._port = serial.Serial(
                port=port_name,
                baudrate=self._config.baud,
                bytesize=self.DATA_BITS,
                parity=self.PARITY,
                stopbits=self.STOP_BITS,
                timeout=None,
                write_timeout=None,
            )
        except SerialException as e:
            error_msg = str(e).lower()
            if "access" in error_msg or "permission" in error_msg or "busy" in error_msg:
                raise PortInUseError(f"{port_name} is already in use by another application") from e
            raise PortNotFoundError(f"Failed to open {port_name}: {e}") from e

        self._port.reset_input_buffer()
        self._port.reset_output_buffer()

    def close(self) -> None:
        """Close the serial port."""
        if self._port and self._port.is_open:
            self._port.close()
            logger.info(f"Serial port {self.name} closed")
        self._port = None

    def write(self, data: bytes) -> int:
        port = self._require_port()
        self._write_cancelled.clear()
        view = memoryview(data)
        sent = 0
        try:
            while sent < len(view) and not self._write_cancelled.is_set():
                sent += port.write(view[sent:]) or 0
            port.flush()
        except SerialException as e:
            raise TransportError(f"Write to {self.name} failed: {e}") from e
        return sent

    def read(self, length: int) -> bytes:
        port = self._require_port()
        self._read_cancelled.clear()
        data = bytearray()
        try:
            while len(data) < length and not self._read_cancelled.is_set():
                data.extend(port.read(length - len(data)))
        except SerialException as e:
            raise TransportError(f"Read from {self.name} failed: {e}") from e
        return bytes(data)

    def cancel_read(self) -> None:
        if not self.is_open:
            return
        self._read_cancelled.set()
        try:
            self._port.cancel_read()
        except SerialException as e:
            logger.warning(f"Failed to cancel pending read on {self.name}: {e}")

    def cancel_write(self) -> None:
        if not self.is_open:
            return
        self._write_cancelled.set()
        try:
            self._port.cancel_write()
        except SerialException as e:
            logger.warning(f"Failed to cancel pending write on {self.name}: {e}")

    def reset_input_buffer(self) -> None:
        port = self._require_port()
        try:
            port.reset_input_buffer()
        except SerialException as e:
            raise TransportError(f"Failed to flush {self.name}: {e}") from e

    def _require_port(self) -> serial.Serial:
        if not self.is_open:
            raise NotConnectedError("Serial port not open")
        return self._port
