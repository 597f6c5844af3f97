"""
Finger pose predicates computed from hand landmarks.

All functions are pure: they read an immutable HandLandmarks and never
keep state between calls.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import GestureThresholds
from .hand_landmarks import HandLandmarks, LandmarkIndex

# (base, tip) landmark pairs of the four non-thumb fingers
FINGER_JOINTS: dict[str, tuple[int, int]] = {
    "index": (LandmarkIndex.INDEX_MCP, LandmarkIndex.INDEX_TIP),
    "middle": (LandmarkIndex.MIDDLE_MCP, LandmarkIndex.MIDDLE_TIP),
    "ring": (LandmarkIndex.RING_MCP, LandmarkIndex.RING_TIP),
    "pinky": (LandmarkIndex.PINKY_MCP, LandmarkIndex.PINKY_TIP),
}

_MIN_DENOMINATOR = 1e-15


@dataclass(frozen=True)
class FingerStates:
    """Straightness of each finger for one hand."""
    thumb: bool
    index: bool
    middle: bool
    ring: bool
    pinky: bool

    @property
    def straight_count(self) -> int:
        """Number of straight non-thumb fingers."""
        return sum((self.index, self.middle, self.ring, self.pinky))


def angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """
    Unsigned angle between two vectors in degrees.

    A zero-length vector gives 0 degrees.
    """
    denom = np.sqrt(np.dot(a, a) * np.dot(b, b))
    if denom < _MIN_DENOMINATOR:
        return 0.0
    cos_angle = np.clip(np.dot(a, b) / denom, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def is_finger_straight(
    wrist: np.ndarray,
    base: np.ndarray,
    tip: np.ndarray,
    max_angle_deg: float
) -> bool:
    """
    Check whether a finger continues the wrist->base direction.

    A curled finger folds back towards the palm, so the base->tip vector
    turns sharply away from the wrist->base vector.
    """
    return angle_between(tip - base, base - wrist) < max_angle_deg


def is_thumb_straight(hand: HandLandmarks, min_distance: float) -> bool:
    """Thumb counts as straight when its tip is away from the index MCP."""
    thumb_tip = hand.thumb_tip.as_array()
    index_base = hand.landmarks[LandmarkIndex.INDEX_MCP].as_array()
    return float(np.linalg.norm(thumb_tip - index_base)) > min_distance


def compute_finger_states(
    hand: HandLandmarks,
    thresholds: Optional[GestureThresholds] = None
) -> FingerStates:
    """
    Compute straight/curled predicates for all five fingers.

    Args:
        hand: Complete hand (21 landmarks).
        thresholds: Angle and distance thresholds. Defaults if None.

    Returns:
        FingerStates for the hand.

    Raises:
        ValueError: If the hand has fewer than 21 landmarks.
    """
    if not hand.is_complete:
        raise ValueError(f"Hand needs 21 landmarks, got {len(hand.landmarks)}")

    thresholds = thresholds or GestureThresholds()
    points = hand.to_array()
    wrist = hand.wrist.as_array()

    straight = {
        name: is_finger_straight(wrist, points[base], points[tip], thresholds.finger_straight_angle_deg)
        for name, (base, tip) in FINGER_JOINTS.items()
    }

    return FingerStates(
        thumb=is_thumb_straight(hand, thresholds.thumb_straight_distance),
        **straight
    )
