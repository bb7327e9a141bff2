"""
Map driver exceptions to API error codes.
"""

from typing import Tuple

from pydantic import ValidationError

from ledcube_sync.utils.exceptions import (
    NotConnectedError,
    InvalidValueError,
    SerialTimeoutError,
    ChannelBusyError,
    DeviceErrorResponse,
    ProtocolError,
    DriverError,
)


ERROR_INVALID_VALUE = 0x402  # 1026
ERROR_NOT_CONNECTED = 0x407  # 1031
ERROR_DRIVER_ERROR = 0x500  # 1280
ERROR_TIMEOUT = 0x501  # 1281
ERROR_PROTOCOL = 0x502  # 1282
ERROR_DEVICE = 0x503  # 1283
ERROR_CHANNEL_BUSY = 0x504  # 1284
ERROR_TRANSFER_FAILED = 0x505  # 1285


def map_exception(exception: Exception) -> Tuple[int, str]:
    """
    Map exception to error code and message.

    Returns:
        Tuple of (ErrorNumber, ErrorMessage).
    """
    if isinstance(exception, NotConnectedError):
        return (ERROR_NOT_CONNECTED, str(exception))

    if isinstance(exception, (InvalidValueError, ValidationError)):
        return (ERROR_INVALID_VALUE, str(exception))

    if isinstance(exception, SerialTimeoutError):
        return (ERROR_TIMEOUT, str(exception))

    if isinstance(exception, ChannelBusyError):
        return (ERROR_CHANNEL_BUSY, str(exception))

    # Before ProtocolError: DeviceErrorResponse is a ProtocolError subclass
    if isinstance(exception, DeviceErrorResponse):
        return (ERROR_DEVICE, str(exception))

    if isinstance(exception, ProtocolError):
        return (ERROR_PROTOCOL, str(exception))

    if isinstance(exception, DriverError):
        return (ERROR_DRIVER_ERROR, str(exception))

    return (ERROR_DRIVER_ERROR, f"Internal error: {type(exception).__name__}: {exception}")
