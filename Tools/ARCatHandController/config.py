"""
Configuration constants for ARCatHandController.

This module contains all tunable parameters for hand detection,
gesture classification, target mapping and the cat interaction
state machine.
"""

from dataclasses import dataclass, field
from typing import Final


# Camera configuration (desktop harness only)
CAMERA_WIDTH: Final[int] = 640
CAMERA_HEIGHT: Final[int] = 480
CAMERA_FPS: Final[int] = 30
DEFAULT_CAMERA_INDEX: Final[int] = 0

# MediaPipe configuration
MEDIAPIPE_MAX_NUM_HANDS: Final[int] = 1
MEDIAPIPE_MIN_DETECTION_CONFIDENCE: Final[float] = 0.7
MEDIAPIPE_MIN_PRESENCE_CONFIDENCE: Final[float] = 0.7
MEDIAPIPE_MIN_TRACKING_CONFIDENCE: Final[float] = 0.5

# Detection scheduling
DETECT_INTERVAL_SEC: Final[float] = 0.08  # Minimum gap between detection attempts

# Hand geometry
NUM_HAND_LANDMARKS: Final[int] = 21
FINGER_STRAIGHT_ANGLE_DEG: Final[float] = 35.0  # base->tip vs wrist->base
THUMB_STRAIGHT_DISTANCE: Final[float] = 0.05  # Thumb tip to index MCP (normalized)

# Gesture smoothing
GESTURE_BUFFER_SIZE: Final[int] = 5  # Majority vote window (frames)

# Interaction state machine
GESTURE_HOLD_TIME_SEC: Final[float] = 0.3  # Gates Play and Sleep only
IDLE_INTERVAL_SEC: Final[float] = 120.0  # 2 minutes between idle variants
IDLE_ANIMATIONS: Final[tuple[str, ...]] = ("Idle", "Idle_a", "Idle_b", "Idle_c", "Sleep")

# Target mapping
IS_CAMERA_MIRRORED: Final[bool] = True  # Front feed is horizontally flipped
MIN_TARGET_DISTANCE: Final[float] = 0.25  # meters
MAX_TARGET_DISTANCE: Final[float] = 3.0  # meters
DEPTH_SCALE: Final[float] = 0.5  # Landmark z -> meters
CAMERA_VERTICAL_FOV_DEG: Final[float] = 60.0  # Virtual observer (harness)

# Target orientation
ROTATION_SPEED: Final[float] = 10.0  # Slerp factor per second
DIRECTION_EPSILON_SQ: Final[float] = 0.0001  # Below this the direction is degenerate

# Logging
LOG_APP_NAME: Final[str] = "ARCatHandController"
LOG_FILENAME: Final[str] = "ar_cat_hand_controller.log"
LOG_MAX_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT: Final[int] = 3

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_PROFILE_ERROR: Final[int] = 1
EXIT_CAMERA_ERROR: Final[int] = 2
EXIT_RUNTIME_ERROR: Final[int] = 3


@dataclass
class GestureThresholds:
    """Container for finger predicate thresholds."""

    finger_straight_angle_deg: float = FINGER_STRAIGHT_ANGLE_DEG
    thumb_straight_distance: float = THUMB_STRAIGHT_DISTANCE


@dataclass
class MapperSettings:
    """Container for landmark-to-world mapping settings."""

    mirrored: bool = IS_CAMERA_MIRRORED
    min_distance: float = MIN_TARGET_DISTANCE
    max_distance: float = MAX_TARGET_DISTANCE
    depth_scale: float = DEPTH_SCALE


@dataclass
class InteractionTimings:
    """Container for state machine timing and idle settings."""

    hold_time: float = GESTURE_HOLD_TIME_SEC
    idle_interval: float = IDLE_INTERVAL_SEC
    idle_animations: tuple[str, ...] = field(default_factory=lambda: IDLE_ANIMATIONS)
