"""
Animation data model using Pydantic for validation.

An AnimationSet is the unit moved by download and upload: an ordered tuple
of animations, each an ordered tuple of frames. Counts are limited by the
single count byte on the wire, and every frame carries exactly one byte per
LED column of the 8x8x8 cube.

Collections are tuples so that frozen models stay immutable all the way
down; a validated frame cannot later grow past 64 bytes.
"""

from typing import Annotated, Tuple

from pydantic import BaseModel, ConfigDict, Field


FRAME_SIZE = 64  # pixel bytes per frame (8 layers x 8 rows, one bit per LED)
MAX_COUNT = 255  # largest animation/frame count a single byte can carry

Byte = Annotated[int, Field(ge=0, le=255)]


class Frame(BaseModel):
    """One still image of the cube plus how long it is shown."""

    model_config = ConfigDict(frozen=True)

    duration: Byte = Field(description="Display time in firmware ticks")
    pixels: Tuple[Byte, ...] = Field(
        min_length=FRAME_SIZE, max_length=FRAME_SIZE,
        description="64 bytes of LED state"
    )

    @classmethod
    def blank(cls, duration: int = 1) -> "Frame":
        """Frame with every LED off."""
        return cls(duration=duration, pixels=(0,) * FRAME_SIZE)

    @property
    def payload(self) -> bytes:
        return bytes(self.pixels)


class Animation(BaseModel):
    """Ordered frames; tuple order is playback order."""

    model_config = ConfigDict(frozen=True)

    frames: Tuple[Frame, ...] = Field(default=(), max_length=MAX_COUNT)

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def __len__(self) -> int:
        return len(self.frames)


class AnimationSet(BaseModel):
    """Every animation stored on a cube, transferred as one unit."""

    model_config = ConfigDict(frozen=True)

    animations: Tuple[Animation, ...] = Field(default=(), max_length=MAX_COUNT)

    @property
    def animation_count(self) -> int:
        return len(self.animations)

    @property
    def frame_total(self) -> int:
        return sum(len(a) for a in self.animations)

    def __len__(self) -> int:
        return len(self.animations)

    def __getitem__(self, index: int) -> Animation:
        return self.animations[index]
