"""
Asynchronous hand detector using the MediaPipe Tasks HandLandmarker.

Runs the landmarker in LIVE_STREAM mode: frames are submitted with
detect_async() and results arrive on a MediaPipe worker thread through the
result callback. The callback must not touch controller state; it only
forwards a HandFrame to whoever registered for results.
"""

from typing import Any, Callable, Optional

import numpy as np

from .config import (
    MEDIAPIPE_MAX_NUM_HANDS,
    MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
    MEDIAPIPE_MIN_PRESENCE_CONFIDENCE,
    MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
)
from .hand_landmarks import HandFrame, HandLandmarks, Landmark
from .logger import get_logger
from .model_manager import ensure_hand_landmarker_model

logger = get_logger("HandDetector")

ResultCallback = Callable[[HandFrame], None]


class DetectorError(Exception):
    """Raised when the hand detector cannot be created or used."""
    pass


def convert_result(result: Any, timestamp_ms: int) -> HandFrame:
    """
    Convert a HandLandmarkerResult into a HandFrame.

    Only the first hand is kept.

    Args:
        result: MediaPipe HandLandmarkerResult (or any object with the same
            hand_landmarks / handedness attributes).
        timestamp_ms: Frame timestamp.

    Returns:
        HandFrame with the first hand or no hand.
    """
    hand_landmarks = getattr(result, "hand_landmarks", None)
    if not hand_landmarks:
        return HandFrame(hand=None, timestamp_ms=timestamp_ms)

    first_hand = hand_landmarks[0]

    handedness = "Unknown"
    score = 1.0
    handedness_list = getattr(result, "handedness", None)
    if handedness_list and handedness_list[0]:
        category = handedness_list[0][0]
        handedness = category.category_name
        score = category.score

    landmarks = tuple(Landmark(x=lm.x, y=lm.y, z=lm.z) for lm in first_hand)
    return HandFrame(
        hand=HandLandmarks(landmarks=landmarks, handedness=handedness, score=score),
        timestamp_ms=timestamp_ms
    )


class HandDetector:
    """
    MediaPipe HandLandmarker wrapper in LIVE_STREAM mode.

    Usage:
        detector = HandDetector()
        detector.set_result_callback(on_frame)
        detector.initialize()
        detector.detect_async(rgb_frame, timestamp_ms)
        ...
        detector.close()
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        max_num_hands: int = MEDIAPIPE_MAX_NUM_HANDS,
        min_detection_confidence: float = MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
        min_presence_confidence: float = MEDIAPIPE_MIN_PRESENCE_CONFIDENCE,
        min_tracking_confidence: float = MEDIAPIPE_MIN_TRACKING_CONFIDENCE
    ):
        """
        Initialize hand detector.

        Args:
            model_path: Bundled hand_landmarker.task, downloaded if None.
            max_num_hands: Maximum number of hands to detect.
            min_detection_confidence: Minimum hand detection confidence.
            min_presence_confidence: Minimum hand presence confidence.
            min_tracking_confidence: Minimum tracking confidence.
        """
        self.model_path = model_path
        self.max_num_hands = max_num_hands
        self.min_detection_confidence = min_detection_confidence
        self.min_presence_confidence = min_presence_confidence
        self.min_tracking_confidence = min_tracking_confidence

        self._landmarker = None
        self._on_result: Optional[ResultCallback] = None
        self._last_timestamp_ms = -1

        logger.info(
            f"HandDetector created (max_hands={max_num_hands}, "
            f"detection={min_detection_confidence}, presence={min_presence_confidence}, "
            f"tracking={min_tracking_confidence})"
        )

    @property
    def is_initialized(self) -> bool:
        return self._landmarker is not None

    def set_result_callback(self, callback: Optional[ResultCallback]) -> None:
        """Register the receiver of detection results."""
        self._on_result = callback

    def initialize(self) -> None:
        """
        Create the MediaPipe HandLandmarker.

        Raises:
            DetectorError: If the model is unavailable or MediaPipe fails.
        """
        if self._landmarker is not None:
            return

        try:
            from mediapipe.tasks import python as mp_python
            from mediapipe.tasks.python import vision as mp_vision

            model = ensure_hand_landmarker_model(self.model_path)
            logger.debug(f"Model path: {model}")

            options = mp_vision.HandLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=model),
                running_mode=mp_vision.RunningMode.LIVE_STREAM,
                num_hands=self.max_num_hands,
                min_hand_detection_confidence=self.min_detection_confidence,
                min_hand_presence_confidence=self.min_presence_confidence,
                min_tracking_confidence=self.min_tracking_confidence,
                result_callback=self._handle_result
            )
            self._landmarker = mp_vision.HandLandmarker.create_from_options(options)
        except Exception as e:
            raise DetectorError(f"Failed to create HandLandmarker: {e}") from e

        logger.info("MediaPipe HandLandmarker initialized (LIVE_STREAM mode)")

    def detect_async(self, rgb_image: np.ndarray, timestamp_ms: int) -> None:
        """
        Submit an RGB frame for detection.

        Args:
            rgb_image: RGB image as numpy array (H, W, 3).
            timestamp_ms: Frame timestamp, must increase between calls.

        Raises:
            DetectorError: If the detector is not initialized.
        """
        if self._landmarker is None:
            raise DetectorError("HandDetector not initialized")

        import mediapipe as mp

        # LIVE_STREAM mode rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        if not rgb_image.flags['C_CONTIGUOUS']:
            rgb_image = np.ascontiguousarray(rgb_image)

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_image)
        self._landmarker.detect_async(mp_image, timestamp_ms)

    def _handle_result(self, result: Any, output_image: Any, timestamp_ms: int) -> None:
        """MediaPipe worker-thread callback."""
        frame = convert_result(result, timestamp_ms)
        if self._on_result:
            self._on_result(frame)

    def close(self) -> None:
        """Release MediaPipe resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        logger.debug("HandDetector closed")

    def __enter__(self) -> "HandDetector":
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
