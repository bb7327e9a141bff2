"""
Custom exception classes for the LED cube driver.
"""


class CubeException(Exception):
    """Base exception for all LED cube driver errors."""
    pass


class NotConnectedError(CubeException):
    """Raised when an operation requires a session but the cube is disconnected."""
    pass


class DriverError(CubeException):
    """General driver error (port handling, transport failure)."""
    pass


class InvalidValueError(CubeException):
    """Invalid parameter value."""
    pass


class SerialTimeoutError(CubeException):
    """Bounded read or write did not finish before its deadline."""
    pass


class ChannelBusyError(CubeException):
    """A timed-out I/O call is still running against the transport."""
    pass


class ProtocolError(CubeException):
    """Serial protocol error (unexpected byte, wrong length, etc.)."""
    pass


class ProtocolMismatchError(ProtocolError):
    """Received byte differs from the expected acknowledgment."""

    def __init__(self, message: str, received: int = None):
        super().__init__(message)
        self.received = received


class DeviceErrorResponse(ProtocolMismatchError):
    """Cube answered with its ERROR byte instead of an acknowledgment."""
    pass


class MalformedResultError(ProtocolError):
    """Read returned fewer bytes than the fixed length requires."""
    pass


class MalformedFrameError(ProtocolError):
    """Frame fields do not fit the wire format (1 duration byte + 64 pixels)."""
    pass


class PortNotFoundError(DriverError):
    """Serial port does not exist."""
    pass


class PortInUseError(DriverError):
    """Serial port is already open by another application."""
    pass


class TransportError(DriverError):
    """Underlying serial transport failed during a transfer."""
    pass
