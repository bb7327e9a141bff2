"""
Wire constants for the LED cube serial protocol.
"""

from ledcube_sync.animation.models import FRAME_SIZE, MAX_COUNT

ACK = 0x42    # "OK", sent by both sides after every unit
ERROR = 0x23  # sent by the cube for unknown commands

CMD_DOWNLOAD = ord("g")
CMD_UPLOAD = ord("s")
CMD_CLEAR = ord("d")

FINISH_MARKER = bytes([ACK] * 4)

DURATION_SIZE = 1

__all__ = [
    "ACK",
    "ERROR",
    "CMD_DOWNLOAD",
    "CMD_UPLOAD",
    "CMD_CLEAR",
    "FINISH_MARKER",
    "DURATION_SIZE",
    "FRAME_SIZE",
    "MAX_COUNT",
]
