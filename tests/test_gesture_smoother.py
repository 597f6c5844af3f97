import pytest

from ARCatHandController.gesture_smoother import GestureSmoother
from ARCatHandController.gesture_types import GestureType

FIST = GestureType.FIST
PEACE = GestureType.PEACE
UNKNOWN = GestureType.UNKNOWN


def test_majority_wins():
    smoother = GestureSmoother(5)
    for g in (FIST, FIST, UNKNOWN, FIST, PEACE):
        smoother.append(g)
    assert smoother.current() == FIST


def test_single_frame_glitch_suppressed():
    smoother = GestureSmoother(5)
    for g in (PEACE, PEACE, PEACE, FIST):
        smoother.append(g)
    assert smoother.current() == PEACE


def test_oldest_label_evicted():
    smoother = GestureSmoother(5)
    for g in (FIST, PEACE, PEACE, UNKNOWN, UNKNOWN, UNKNOWN):
        smoother.append(g)
    assert len(smoother) == 5
    assert smoother.snapshot() == [PEACE, PEACE, UNKNOWN, UNKNOWN, UNKNOWN]
    assert smoother.counts() == {PEACE: 2, UNKNOWN: 3}


def test_tie_goes_to_first_seen_label():
    smoother = GestureSmoother(4)
    for g in (PEACE, FIST, FIST, PEACE):
        smoother.append(g)
    assert smoother.current() == PEACE


def test_empty_window_is_unknown():
    assert GestureSmoother().current() == UNKNOWN


def test_invalid_window_size():
    with pytest.raises(ValueError):
        GestureSmoother(0)
