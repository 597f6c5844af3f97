"""
Gesture recognizer for ARCatHandController.

Classifies a hand into one of the discrete cat-control gestures and
smooths the result over the last few frames.
"""

from dataclasses import dataclass
from typing import Optional

from .config import GESTURE_BUFFER_SIZE, GestureThresholds
from .gesture_smoother import GestureSmoother
from .gesture_types import GestureType
from .hand_landmarks import HandLandmarks
from .landmark_geometry import FingerStates, compute_finger_states
from .logger import get_logger

logger = get_logger("GestureRecognizer")


@dataclass(frozen=True)
class GestureResult:
    """
    Result of recognizing one hand.

    Attributes:
        gesture: Smoothed gesture, the value callers act on.
        raw_gesture: Single-frame classification before smoothing.
        finger_states: Finger predicates, None for an invalid hand.
    """
    gesture: GestureType
    raw_gesture: GestureType
    finger_states: Optional[FingerStates] = None

    @property
    def is_valid(self) -> bool:
        return self.finger_states is not None


def classify_finger_states(states: FingerStates) -> GestureType:
    """
    Map finger predicates to a gesture.

    Rules overlap, so they are checked in order and the first match wins.

    Args:
        states: Finger straightness predicates.

    Returns:
        Raw gesture label.
    """
    straight_count = states.straight_count

    if straight_count == 0 and not states.thumb:
        return GestureType.FIST
    if straight_count == 4 and states.thumb:
        return GestureType.OPEN_PALM
    if states.index and not states.middle and not states.ring and not states.pinky:
        return GestureType.POINTING
    if states.index and states.middle and not states.ring and not states.pinky:
        return GestureType.PEACE
    return GestureType.UNKNOWN


class GestureRecognizer:
    """
    Classifies hands and reports the majority-vote gesture.

    Every valid hand appends its raw label to the smoother; callers only
    ever see the smoothed label.
    """

    def __init__(
        self,
        thresholds: Optional[GestureThresholds] = None,
        buffer_size: int = GESTURE_BUFFER_SIZE
    ):
        """
        Initialize gesture recognizer.

        Args:
            thresholds: Finger predicate thresholds. Defaults if None.
            buffer_size: Smoothing window size in frames.
        """
        self.thresholds = thresholds or GestureThresholds()
        self._smoother = GestureSmoother(buffer_size)
        logger.debug(
            f"GestureRecognizer initialized (angle<{self.thresholds.finger_straight_angle_deg}deg, "
            f"thumb>{self.thresholds.thumb_straight_distance}, window={buffer_size})"
        )

    @property
    def smoother(self) -> GestureSmoother:
        return self._smoother

    def recognize(self, hand: Optional[HandLandmarks]) -> GestureResult:
        """
        Classify a hand and update the smoothing window.

        Args:
            hand: Detected hand, or None if no hand is present.

        Returns:
            GestureResult with the smoothed gesture. NO_HAND when hand is None;
            UNKNOWN without touching the window when the hand is incomplete.
        """
        if hand is None:
            return GestureResult(gesture=GestureType.NO_HAND, raw_gesture=GestureType.NO_HAND)

        if not hand.is_complete:
            logger.debug(f"Ignoring incomplete hand ({len(hand.landmarks)} landmarks)")
            return GestureResult(gesture=GestureType.UNKNOWN, raw_gesture=GestureType.UNKNOWN)

        states = compute_finger_states(hand, self.thresholds)
        raw = classify_finger_states(states)
        self._smoother.append(raw)

        return GestureResult(
            gesture=self._smoother.current(),
            raw_gesture=raw,
            finger_states=states
        )
