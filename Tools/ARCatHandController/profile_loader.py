"""
Profile loader for ARCatHandController.

Loads and validates JSON profile files. Profile properties use camelCase
to match the host application's JSON format.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .config import (
    DEPTH_SCALE,
    DETECT_INTERVAL_SEC,
    FINGER_STRAIGHT_ANGLE_DEG,
    GESTURE_BUFFER_SIZE,
    GESTURE_HOLD_TIME_SEC,
    IDLE_ANIMATIONS,
    IDLE_INTERVAL_SEC,
    IS_CAMERA_MIRRORED,
    MAX_TARGET_DISTANCE,
    MEDIAPIPE_MAX_NUM_HANDS,
    MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
    MEDIAPIPE_MIN_PRESENCE_CONFIDENCE,
    MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
    MIN_TARGET_DISTANCE,
    ROTATION_SPEED,
    THUMB_STRAIGHT_DISTANCE,
    GestureThresholds,
    InteractionTimings,
    MapperSettings,
)
from .logger import get_logger

logger = get_logger("ProfileLoader")


@dataclass
class ControllerProfile:
    """
    Profile configuration loaded from JSON.

    Attributes:
        id: Unique identifier.
        name: Profile display name.
        is_camera_mirrored: Camera feed is horizontally flipped.
        detect_interval: Minimum seconds between detection attempts.
        min_distance: Lower clamp of the camera-to-target distance.
        max_distance: Upper clamp of the camera-to-target distance.
        depth_scale: Landmark z to world depth factor.
        rotation_speed: Facing interpolation rate per second.
        gesture_buffer_size: Gesture smoothing window in frames.
        hold_time: Seconds OpenPalm/Pointing must be held.
        idle_interval: Seconds between idle variant switches.
        idle_animations: Idle variant trigger names.
        finger_straight_angle_deg: Max base->tip vs wrist->base angle.
        thumb_straight_distance: Min thumb tip to index MCP distance.
        model_path: Optional bundled hand_landmarker.task.
        num_hands: MediaPipe max hands.
        min_hand_detection_confidence: MediaPipe detection confidence.
        min_hand_presence_confidence: MediaPipe presence confidence.
        min_tracking_confidence: MediaPipe tracking confidence.
    """

    id: str
    name: str
    is_camera_mirrored: bool = IS_CAMERA_MIRRORED
    detect_interval: float = DETECT_INTERVAL_SEC
    min_distance: float = MIN_TARGET_DISTANCE
    max_distance: float = MAX_TARGET_DISTANCE
    depth_scale: float = DEPTH_SCALE
    rotation_speed: float = ROTATION_SPEED
    gesture_buffer_size: int = GESTURE_BUFFER_SIZE
    hold_time: float = GESTURE_HOLD_TIME_SEC
    idle_interval: float = IDLE_INTERVAL_SEC
    idle_animations: list[str] = field(default_factory=lambda: list(IDLE_ANIMATIONS))
    finger_straight_angle_deg: float = FINGER_STRAIGHT_ANGLE_DEG
    thumb_straight_distance: float = THUMB_STRAIGHT_DISTANCE
    model_path: Optional[str] = None
    num_hands: int = MEDIAPIPE_MAX_NUM_HANDS
    min_hand_detection_confidence: float = MEDIAPIPE_MIN_DETECTION_CONFIDENCE
    min_hand_presence_confidence: float = MEDIAPIPE_MIN_PRESENCE_CONFIDENCE
    min_tracking_confidence: float = MEDIAPIPE_MIN_TRACKING_CONFIDENCE

    def gesture_thresholds(self) -> GestureThresholds:
        return GestureThresholds(
            finger_straight_angle_deg=self.finger_straight_angle_deg,
            thumb_straight_distance=self.thumb_straight_distance
        )

    def mapper_settings(self) -> MapperSettings:
        return MapperSettings(
            mirrored=self.is_camera_mirrored,
            min_distance=self.min_distance,
            max_distance=self.max_distance,
            depth_scale=self.depth_scale
        )

    def interaction_timings(self) -> InteractionTimings:
        return InteractionTimings(
            hold_time=self.hold_time,
            idle_interval=self.idle_interval,
            idle_animations=tuple(self.idle_animations)
        )


class ProfileLoadError(Exception):
    """Raised when profile loading or validation fails."""
    pass


def load_profile(profile_path: str | Path) -> ControllerProfile:
    """
    Load and validate a profile from a JSON file.

    Args:
        profile_path: Path to the JSON profile file.

    Returns:
        Validated ControllerProfile instance.

    Raises:
        ProfileLoadError: If file cannot be read or validation fails.
    """
    path = Path(profile_path)
    logger.info(f"Loading profile from: {path}")

    if not path.exists():
        raise ProfileLoadError(f"Profile file not found: {path}")

    if not path.is_file():
        raise ProfileLoadError(f"Profile path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProfileLoadError(f"Invalid JSON in profile: {e}")
    except IOError as e:
        raise ProfileLoadError(f"Cannot read profile file: {e}")

    if not isinstance(data, dict):
        raise ProfileLoadError("Profile root must be a JSON object")

    return parse_profile(data)


def _read_number(
    data: dict[str, Any],
    key: str,
    default: float,
    minimum: float,
    maximum: float
) -> float:
    """Read a numeric field, falling back to the default and clamping to range."""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning(f"Invalid {key}, using default: {default}")
        value = default
    clamped = max(minimum, min(maximum, float(value)))
    if clamped != value:
        logger.warning(f"{key}={value} out of range, clamped to {clamped}")
    return clamped


def _read_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        logger.warning(f"Invalid {key}, using default: {default}")
        return default
    return value


def parse_profile(data: dict[str, Any]) -> ControllerProfile:
    """
    Parse and validate profile data from dictionary.

    Args:
        data: Dictionary with camelCase profile properties.

    Returns:
        Validated ControllerProfile instance.

    Raises:
        ProfileLoadError: If required fields are missing or invalid.
    """
    if "id" not in data:
        raise ProfileLoadError("Profile missing required field: id")

    if "name" not in data:
        raise ProfileLoadError("Profile missing required field: name")

    min_distance = _read_number(data, "minDistance", MIN_TARGET_DISTANCE, 0.01, 100.0)
    max_distance = _read_number(data, "maxDistance", MAX_TARGET_DISTANCE, 0.01, 100.0)
    if min_distance > max_distance:
        raise ProfileLoadError(
            f"minDistance ({min_distance}) must not exceed maxDistance ({max_distance})"
        )

    idle_animations = data.get("idleAnimations", list(IDLE_ANIMATIONS))
    if (
        not isinstance(idle_animations, list)
        or not idle_animations
        or not all(isinstance(name, str) and name for name in idle_animations)
    ):
        raise ProfileLoadError("idleAnimations must be a non-empty list of trigger names")

    model_path = data.get("modelPath")
    if model_path is not None and not isinstance(model_path, str):
        logger.warning("Invalid modelPath, ignoring")
        model_path = None

    profile = ControllerProfile(
        id=str(data["id"]),
        name=str(data["name"]),
        is_camera_mirrored=_read_bool(data, "isCameraMirrored", IS_CAMERA_MIRRORED),
        detect_interval=_read_number(data, "detectInterval", DETECT_INTERVAL_SEC, 0.0, 1.0),
        min_distance=min_distance,
        max_distance=max_distance,
        depth_scale=_read_number(data, "depthScale", DEPTH_SCALE, 0.0, 10.0),
        rotation_speed=_read_number(data, "rotationSpeed", ROTATION_SPEED, 0.0, 100.0),
        gesture_buffer_size=int(_read_number(data, "gestureBufferSize", GESTURE_BUFFER_SIZE, 1, 60)),
        hold_time=_read_number(data, "holdTimeSeconds", GESTURE_HOLD_TIME_SEC, 0.0, 10.0),
        idle_interval=_read_number(data, "idleIntervalSeconds", IDLE_INTERVAL_SEC, 1.0, 3600.0),
        idle_animations=list(idle_animations),
        finger_straight_angle_deg=_read_number(
            data, "fingerStraightAngleDeg", FINGER_STRAIGHT_ANGLE_DEG, 1.0, 180.0
        ),
        thumb_straight_distance=_read_number(
            data, "thumbStraightDistance", THUMB_STRAIGHT_DISTANCE, 0.0, 1.0
        ),
        model_path=model_path,
        num_hands=int(_read_number(data, "numHands", MEDIAPIPE_MAX_NUM_HANDS, 1, 4)),
        min_hand_detection_confidence=_read_number(
            data, "minHandDetectionConfidence", MEDIAPIPE_MIN_DETECTION_CONFIDENCE, 0.0, 1.0
        ),
        min_hand_presence_confidence=_read_number(
            data, "minHandPresenceConfidence", MEDIAPIPE_MIN_PRESENCE_CONFIDENCE, 0.0, 1.0
        ),
        min_tracking_confidence=_read_number(
            data, "minTrackingConfidence", MEDIAPIPE_MIN_TRACKING_CONFIDENCE, 0.0, 1.0
        ),
    )

    logger.info(f"Loaded profile: {profile.name} (id={profile.id})")
    logger.debug(f"  Mirrored: {profile.is_camera_mirrored}")
    logger.debug(f"  Detect interval: {profile.detect_interval}s")
    logger.debug(f"  Distance range: [{profile.min_distance}, {profile.max_distance}]")
    logger.debug(f"  Hold time: {profile.hold_time}s, idle interval: {profile.idle_interval}s")
    logger.debug(f"  Idle animations: {profile.idle_animations}")

    return profile


def create_default_profile() -> ControllerProfile:
    """
    Create a default profile with standard settings.

    Returns:
        ControllerProfile with default values.
    """
    return ControllerProfile(id="default", name="Default")
