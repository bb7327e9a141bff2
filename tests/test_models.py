"""Tests for the animation data model."""

import pytest
from pydantic import ValidationError

from ledcube_sync.animation.models import Animation, AnimationSet, Frame, FRAME_SIZE, MAX_COUNT


def test_blank_frame():
    frame = Frame.blank(3)
    assert frame.duration == 3
    assert frame.pixels == (0,) * FRAME_SIZE
    assert frame.payload == bytes(FRAME_SIZE)


@pytest.mark.parametrize("length", [0, 63, 65])
def test_frame_requires_exactly_64_pixels(length):
    with pytest.raises(ValidationError):
        Frame(duration=1, pixels=[0] * length)


@pytest.mark.parametrize("duration", [-1, 256])
def test_frame_duration_is_a_byte(duration):
    with pytest.raises(ValidationError):
        Frame(duration=duration, pixels=[0] * 64)


def test_frame_pixels_are_bytes():
    with pytest.raises(ValidationError):
        Frame(duration=1, pixels=[0] * 63 + [256])


def test_frame_is_immutable():
    frame = Frame.blank()
    with pytest.raises(ValidationError):
        frame.duration = 9
    with pytest.raises(TypeError):
        frame.pixels[0] = 999
    with pytest.raises(AttributeError):
        frame.pixels.append(1)
    assert len(frame.payload) == FRAME_SIZE


def test_nested_collections_are_immutable(sample_set):
    with pytest.raises(AttributeError):
        sample_set.animations.append(Animation())
    with pytest.raises(AttributeError):
        sample_set[0].frames.append(Frame.blank())
    assert sample_set.animation_count == 3


def test_lists_are_accepted_as_input():
    frame = Frame(duration=1, pixels=list(range(64)))
    assert isinstance(frame.pixels, tuple)
    assert Animation(frames=[frame]).frames == (frame,)


def test_frame_count_is_derived():
    animation = Animation(frames=[Frame.blank(), Frame.blank()])
    assert animation.frame_count == 2
    assert len(animation) == 2


def test_animation_frame_limit():
    Animation(frames=[Frame.blank()] * MAX_COUNT)
    with pytest.raises(ValidationError):
        Animation(frames=[Frame.blank()] * (MAX_COUNT + 1))


def test_animation_set_limit():
    AnimationSet(animations=[Animation()] * MAX_COUNT)
    with pytest.raises(ValidationError):
        AnimationSet(animations=[Animation()] * (MAX_COUNT + 1))


def test_animation_set_totals(sample_set):
    assert sample_set.animation_count == 3
    assert sample_set.frame_total == 5
    assert len(sample_set[1]) == 0


def test_json_round_trip(sample_set):
    """Sets survive JSON so they can pass through the API and CLI."""
    restored = AnimationSet.model_validate_json(sample_set.model_dump_json())
    assert restored == sample_set
