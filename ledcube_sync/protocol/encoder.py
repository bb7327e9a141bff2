"""
Frame encoding for the LED cube protocol.

A frame travels as two units, each acknowledged separately: one duration
byte, then exactly 64 pixel bytes. There are no delimiters, so every length
must be exact or the stream desynchronizes.
"""

from typing import Optional, Sequence, Tuple, Union

from .constants import DURATION_SIZE, FRAME_SIZE, MAX_COUNT
from ledcube_sync.animation.models import Frame
from ledcube_sync.utils.exceptions import MalformedFrameError


def encode_count(count: int) -> bytes:
    """
    Encode an animation or frame count as a single byte.

    Raises:
        MalformedFrameError: If count is outside 0-255.
    """
    if count < 0 or count > MAX_COUNT:
        raise MalformedFrameError(f"Count must be 0-{MAX_COUNT}, got {count}")
    return bytes([count])


def encode_frame(
    frame_or_duration: Union[Frame, int],
    pixels: Optional[Sequence[int]] = None,
) -> Tuple[bytes, bytes]:
    """
    Encode a frame as its duration unit and pixel unit.

    Args:
        frame_or_duration: A Frame, or a raw duration value.
        pixels: Pixel values when a raw duration is given.

    Returns:
        (1-byte duration, 64-byte payload).

    Raises:
        MalformedFrameError: If the payload is not exactly 64 bytes or any
            value is outside 0-255.

    Example:
        >>> encode_frame(5, [0] * 64)[0]
        b'\\x05'
    """
    if isinstance(frame_or_duration, Frame):
        duration = frame_or_duration.duration
        pixels = frame_or_duration.pixels
    else:
        duration = frame_or_duration

    if pixels is None:
        raise MalformedFrameError("Frame has no pixel data")

    if len(pixels) != FRAME_SIZE:
        raise MalformedFrameError(f"Frame payload must be {FRAME_SIZE} bytes, got {len(pixels)}")

    try:
        duration_unit = bytes([duration])
        payload = bytes(pixels)
    except (ValueError, TypeError) as e:
        raise MalformedFrameError(f"Frame values must be 0-255: {e}") from e

    return duration_unit, payload


def decode_frame(duration_unit: bytes, payload: bytes) -> Frame:
    """
    Build a Frame from its received duration and pixel units.

    Raises:
        MalformedFrameError: If either unit has the wrong length.
    """
    if len(duration_unit) != DURATION_SIZE:
        raise MalformedFrameError(f"Expected {DURATION_SIZE} duration byte, got {len(duration_unit)}")

    if len(payload) != FRAME_SIZE:
        raise MalformedFrameError(f"Expected {FRAME_SIZE} pixel bytes, got {len(payload)}")

    return Frame(duration=duration_unit[0], pixels=list(payload))
