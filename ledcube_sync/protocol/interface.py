"""
Abstract transport interface for the cube's serial link.

This interface allows transparent substitution between a real serial port
and the simulated cube.
"""

from abc import ABC, abstractmethod


class Transport(ABC):
    """Byte-level half-duplex channel to a cube."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable channel name (e.g., port device path)."""
        pass

    @abstractmethod
    def open(self) -> None:
        """
        Open the channel.

        Raises:
            PortNotFoundError: If the serial port does not exist.
            PortInUseError: If the port is already open elsewhere.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the channel. Safe to call twice."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write all bytes, blocking until sent.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If the underlying channel fails.
        """
        pass

    @abstractmethod
    def read(self, length: int) -> bytes:
        """
        Read up to length bytes, blocking until all arrive or cancel_read() is called.

        Returns:
            Bytes received; shorter than length only after cancel_read().

        Raises:
            TransportError: If the underlying channel fails.
        """
        pass

    @abstractmethod
    def cancel_read(self) -> None:
        """
        Abort a read blocked in another thread.

        Must not affect a later read if no read is blocked when called.
        """
        pass

    @abstractmethod
    def cancel_write(self) -> None:
        """Abort a write blocked in another thread; same rule as cancel_read()."""
        pass

    @abstractmethod
    def reset_input_buffer(self) -> None:
        """Discard received bytes not yet read."""
        pass
