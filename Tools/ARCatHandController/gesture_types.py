"""
Discrete gesture labels produced by the recognizer.
"""

from enum import Enum


class GestureType(Enum):
    """Gesture label; the value is the display/trigger name."""
    FIST = "Fist"
    OPEN_PALM = "OpenPalm"
    POINTING = "Pointing"
    PEACE = "Peace"
    UNKNOWN = "Unknown"
    NO_HAND = "NoHand"


# Labels that never drive a gesture transition
PASSIVE_GESTURES = frozenset({GestureType.UNKNOWN, GestureType.NO_HAND})
