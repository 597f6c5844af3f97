"""
Landmark to world-space mapping.

Projects a normalized hand landmark into the 3D space of the observer
camera, at a depth taken from the distance between the camera and the
tracked target.

Conventions follow the host engine: screen origin at the bottom-left with
y up, camera looking down its local +z axis, screen depth measured along
that axis.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import CAMERA_VERTICAL_FOV_DEG, MapperSettings
from .hand_landmarks import HandLandmarks, Landmark
from .logger import get_logger

logger = get_logger("TargetMapper")


@dataclass
class ObserverCamera:
    """
    Pinhole model of the observer (AR) camera.

    Attributes:
        screen_width: Screen width in pixels.
        screen_height: Screen height in pixels.
        position: Camera position in world space.
        rotation: 3x3 camera-to-world rotation (columns: right, up, forward).
        vertical_fov_deg: Vertical field of view in degrees.
    """
    screen_width: int
    screen_height: int
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    vertical_fov_deg: float = CAMERA_VERTICAL_FOV_DEG

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.rotation = np.asarray(self.rotation, dtype=np.float64).reshape(3, 3)

    @property
    def focal_length(self) -> float:
        """Focal length in pixels (square pixels)."""
        return (self.screen_height / 2.0) / np.tan(np.radians(self.vertical_fov_deg) / 2.0)

    @property
    def intrinsic(self) -> np.ndarray:
        """Get 3x3 intrinsic matrix K."""
        f = self.focal_length
        return np.array([
            [f, 0, self.screen_width / 2.0],
            [0, f, self.screen_height / 2.0],
            [0, 0, 1]
        ], dtype=np.float64)

    def screen_to_world(self, screen_point: np.ndarray) -> np.ndarray:
        """
        Unproject a screen point to world space.

        Args:
            screen_point: (x, y, depth) with x/y in pixels and depth in
                world units in front of the camera.

        Returns:
            World-space point.
        """
        sx, sy, depth = np.asarray(screen_point, dtype=np.float64)
        K = self.intrinsic
        local = np.array([
            (sx - K[0, 2]) / K[0, 0] * depth,
            (sy - K[1, 2]) / K[1, 1] * depth,
            depth
        ])
        return self.position + self.rotation @ local

    def world_to_screen(self, world_point: np.ndarray) -> np.ndarray:
        """
        Project a world point to (x, y, depth) screen coordinates.

        Points on the camera plane project to the screen center.
        """
        local = self.rotation.T @ (np.asarray(world_point, dtype=np.float64) - self.position)
        depth = local[2]
        if abs(depth) < 1e-9:
            return np.array([self.screen_width / 2.0, self.screen_height / 2.0, 0.0])
        K = self.intrinsic
        return np.array([
            local[0] / depth * K[0, 0] + K[0, 2],
            local[1] / depth * K[1, 1] + K[1, 2],
            depth
        ])


class TargetMapper:
    """
    Maps hand landmarks into world space around the tracked target.

    Stateless apart from its settings; identical inputs give identical
    outputs.
    """

    def __init__(self, settings: Optional[MapperSettings] = None):
        """
        Initialize target mapper.

        Args:
            settings: Mirroring, distance clamp and depth scale. Defaults if None.
        """
        self.settings = settings or MapperSettings()
        logger.debug(
            f"TargetMapper initialized (mirrored={self.settings.mirrored}, "
            f"distance=[{self.settings.min_distance}, {self.settings.max_distance}], "
            f"depth_scale={self.settings.depth_scale})"
        )

    def reference_distance(self, observer: ObserverCamera, target_position: np.ndarray) -> float:
        """Camera-to-target distance clamped to the configured range."""
        distance = float(np.linalg.norm(np.asarray(target_position, dtype=np.float64) - observer.position))
        return float(np.clip(distance, self.settings.min_distance, self.settings.max_distance))

    def screen_point(
        self,
        landmark: Landmark,
        reference_distance: float,
        screen_width: int,
        screen_height: int
    ) -> np.ndarray:
        """
        Convert a normalized landmark into (x, y, depth) screen coordinates.

        Image y grows downwards while screen y grows upwards, hence the flip.
        Mirroring only affects x.
        """
        x = 1.0 - landmark.x if self.settings.mirrored else landmark.x
        return np.array([
            x * screen_width,
            (1.0 - landmark.y) * screen_height,
            reference_distance + landmark.z * self.settings.depth_scale
        ], dtype=np.float64)

    def map_landmark(
        self,
        landmark: Landmark,
        target_position: np.ndarray,
        observer: ObserverCamera
    ) -> np.ndarray:
        """
        Map a landmark to a world-space position.

        Args:
            landmark: Normalized landmark (usually the index fingertip).
            target_position: Current world position of the target.
            observer: Observer camera pose and projection.

        Returns:
            World-space point.
        """
        distance = self.reference_distance(observer, target_position)
        screen = self.screen_point(landmark, distance, observer.screen_width, observer.screen_height)
        return observer.screen_to_world(screen)

    def map_hand(
        self,
        hand: HandLandmarks,
        target_position: np.ndarray,
        observer: ObserverCamera
    ) -> np.ndarray:
        """
        Map every landmark of a hand to world space.

        Depth of each point is clamped to the distance range so that a hand
        skeleton never crosses the camera plane.

        Returns:
            (N, 3) array of world-space points.
        """
        distance = self.reference_distance(observer, target_position)
        points = np.empty((len(hand.landmarks), 3), dtype=np.float64)
        for i, lm in enumerate(hand.landmarks):
            screen = self.screen_point(lm, distance, observer.screen_width, observer.screen_height)
            screen[2] = np.clip(screen[2], self.settings.min_distance, self.settings.max_distance)
            points[i] = observer.screen_to_world(screen)
        return points
