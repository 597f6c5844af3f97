"""
Hand landmark data types.

Plain containers for the 21 MediaPipe hand landmarks, independent of the
detector backend so the gesture pipeline can be fed from any source.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .config import NUM_HAND_LANDMARKS


# MediaPipe landmark indices
class LandmarkIndex:
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


@dataclass(frozen=True)
class Landmark:
    """Single hand landmark with normalized image coordinates."""
    x: float  # Normalized x [0, 1]
    y: float  # Normalized y [0, 1]
    z: float  # Relative depth, no fixed unit

    def as_array(self) -> np.ndarray:
        """Return the landmark as a float64 vector [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)


@dataclass(frozen=True)
class HandLandmarks:
    """
    Landmarks of a single detected hand.

    Attributes:
        landmarks: Landmarks ordered by anatomical index.
        handedness: 'Left', 'Right' or 'Unknown'.
        score: Handedness confidence score.
    """
    landmarks: tuple[Landmark, ...]
    handedness: str = "Unknown"
    score: float = 1.0

    @classmethod
    def from_points(
        cls,
        points: Sequence[Sequence[float]],
        handedness: str = "Unknown",
        score: float = 1.0
    ) -> "HandLandmarks":
        """Build from an iterable of (x, y, z) triples."""
        return cls(
            landmarks=tuple(Landmark(float(p[0]), float(p[1]), float(p[2])) for p in points),
            handedness=handedness,
            score=score
        )

    @property
    def is_complete(self) -> bool:
        """True when all 21 landmarks are present."""
        return len(self.landmarks) >= NUM_HAND_LANDMARKS

    @property
    def wrist(self) -> Landmark:
        return self.landmarks[LandmarkIndex.WRIST]

    @property
    def thumb_tip(self) -> Landmark:
        return self.landmarks[LandmarkIndex.THUMB_TIP]

    @property
    def index_tip(self) -> Landmark:
        return self.landmarks[LandmarkIndex.INDEX_TIP]

    def to_array(self) -> np.ndarray:
        """Return an (N, 3) array of landmark coordinates."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float64)


@dataclass(frozen=True)
class HandFrame:
    """
    One detector result.

    Attributes:
        hand: First detected hand, or None when no hand was found.
        timestamp_ms: Timestamp the frame was submitted with.
    """
    hand: Optional[HandLandmarks]
    timestamp_ms: int = 0

    @property
    def has_hand(self) -> bool:
        return self.hand is not None
