"""
In-memory animation data model.
"""

from ledcube_sync.animation.models import (
    FRAME_SIZE,
    MAX_COUNT,
    Frame,
    Animation,
    AnimationSet,
)

__all__ = [
    "FRAME_SIZE",
    "MAX_COUNT",
    "Frame",
    "Animation",
    "AnimationSet",
]
