import numpy as np
import pytest

from ARCatHandController.config import GestureThresholds
from ARCatHandController.landmark_geometry import (
    angle_between,
    compute_finger_states,
    is_finger_straight,
    is_thumb_straight,
)

from conftest import make_hand


def test_angle_between_basic():
    assert angle_between(np.array([1.0, 0, 0]), np.array([0, 1.0, 0])) == pytest.approx(90.0)
    assert angle_between(np.array([1.0, 0, 0]), np.array([-2.0, 0, 0])) == pytest.approx(180.0)


def test_angle_with_zero_vector_is_zero():
    assert angle_between(np.zeros(3), np.array([0, 1.0, 0])) == 0.0


def test_finger_straight_and_curled():
    wrist = np.array([0.5, 0.9, 0.0])
    base = np.array([0.5, 0.6, 0.0])
    assert is_finger_straight(wrist, base, np.array([0.5, 0.3, 0.0]), 35.0)
    assert not is_finger_straight(wrist, base, np.array([0.5, 0.75, 0.0]), 35.0)


def test_finger_angle_threshold():
    wrist = np.array([0.0, 0.0, 0.0])
    base = np.array([1.0, 0.0, 0.0])
    tip = base + np.array([np.cos(np.radians(35.0)), np.sin(np.radians(35.0)), 0.0])
    assert not is_finger_straight(wrist, base, tip, 34.9)
    assert is_finger_straight(wrist, base, tip, 35.1)


def test_thumb_distance():
    assert is_thumb_straight(make_hand(thumb=True), 0.05)
    assert not is_thumb_straight(make_hand(thumb=False), 0.05)


def test_finger_states_open_palm(open_palm):
    states = compute_finger_states(open_palm)
    assert states.thumb
    assert states.straight_count == 4


def test_finger_states_fist(fist):
    states = compute_finger_states(fist)
    assert not states.thumb
    assert states.straight_count == 0


def test_finger_states_respect_thresholds(open_palm):
    # Pinky leans ~18 degrees off the wrist->base line
    states = compute_finger_states(open_palm, GestureThresholds(finger_straight_angle_deg=10.0))
    assert not states.pinky
    assert states.middle


def test_incomplete_hand_rejected(incomplete_hand):
    with pytest.raises(ValueError):
        compute_finger_states(incomplete_hand)
