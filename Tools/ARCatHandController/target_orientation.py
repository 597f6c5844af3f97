"""
Yaw-only facing of the target towards the user's finger.

Quaternions are stored as numpy arrays in (x, y, z, w) order, with the
host engine's axes: y up, z forward.
"""

from typing import Optional

import numpy as np

from .config import DIRECTION_EPSILON_SQ, ROTATION_SPEED
from .logger import get_logger

logger = get_logger("TargetOrientation")

IDENTITY_ROTATION = np.array([0.0, 0.0, 0.0, 1.0])
WORLD_UP = np.array([0.0, 1.0, 0.0])


def quaternion_to_matrix(q: np.ndarray) -> np.ndarray:
    """Convert a unit quaternion (x, y, z, w) to a 3x3 rotation matrix."""
    x, y, z, w = q
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)]
    ], dtype=np.float64)


def matrix_to_quaternion(m: np.ndarray) -> np.ndarray:
    """Convert a 3x3 rotation matrix to a unit quaternion (x, y, z, w)."""
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0:
        s = np.sqrt(trace + 1.0) * 2
        q = [(m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s, 0.25 * s]
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = np.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2
        q = [0.25 * s, (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s, (m[2, 1] - m[1, 2]) / s]
    elif m[1, 1] > m[2, 2]:
        s = np.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2
        q = [(m[0, 1] + m[1, 0]) / s, 0.25 * s, (m[1, 2] + m[2, 1]) / s, (m[0, 2] - m[2, 0]) / s]
    else:
        s = np.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2
        q = [(m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s, 0.25 * s, (m[1, 0] - m[0, 1]) / s]
    q = np.array(q, dtype=np.float64)
    return q / np.linalg.norm(q)


def look_rotation(forward: np.ndarray, up: np.ndarray = WORLD_UP) -> np.ndarray:
    """
    Rotation whose +z axis points along ``forward``.

    Args:
        forward: Desired forward direction (need not be normalized).
        up: Reference up direction.

    Returns:
        Quaternion (x, y, z, w).

    Raises:
        ValueError: If forward is zero or parallel to up.
    """
    forward = np.asarray(forward, dtype=np.float64)
    norm = np.linalg.norm(forward)
    if norm < 1e-9:
        raise ValueError("forward direction has zero length")
    forward = forward / norm

    right = np.cross(up, forward)
    right_norm = np.linalg.norm(right)
    if right_norm < 1e-9:
        raise ValueError("forward direction is parallel to up")
    right = right / right_norm
    true_up = np.cross(forward, right)

    return matrix_to_quaternion(np.column_stack([right, true_up, forward]))


def slerp(q0: np.ndarray, q1: np.ndarray, t: float) -> np.ndarray:
    """
    Spherical interpolation between two rotations along the shortest arc.

    ``t`` is clamped to [0, 1].
    """
    t = float(np.clip(t, 0.0, 1.0))
    q0 = np.asarray(q0, dtype=np.float64)
    q1 = np.asarray(q1, dtype=np.float64)

    dot = float(np.dot(q0, q1))
    if dot < 0.0:
        q1 = -q1
        dot = -dot

    if dot > 0.9995:
        # Nearly identical, fall back to normalized lerp
        result = q0 + t * (q1 - q0)
        return result / np.linalg.norm(result)

    theta_0 = np.arccos(dot)
    theta = theta_0 * t
    sin_theta_0 = np.sin(theta_0)
    s0 = np.sin(theta_0 - theta) / sin_theta_0
    s1 = np.sin(theta) / sin_theta_0
    return s0 * q0 + s1 * q1


def yaw_degrees(q: np.ndarray) -> float:
    """Heading of the rotation's forward axis around world up, in degrees."""
    forward = quaternion_to_matrix(q)[:, 2]
    return float(np.degrees(np.arctan2(forward[0], forward[2])))


def horizontal_direction(from_point: np.ndarray, to_point: np.ndarray) -> np.ndarray:
    """Direction between two points with the vertical component removed."""
    direction = np.asarray(to_point, dtype=np.float64) - np.asarray(from_point, dtype=np.float64)
    direction[1] = 0.0
    return direction


class FacingController:
    """
    Turns the target to face the finger on the horizontal plane.

    Interpolation is frame-rate independent: each update moves
    ``rotation_speed * dt`` of the way towards the desired heading.
    """

    def __init__(
        self,
        rotation_speed: float = ROTATION_SPEED,
        epsilon_sq: float = DIRECTION_EPSILON_SQ
    ):
        self.rotation_speed = rotation_speed
        self.epsilon_sq = epsilon_sq

    def update(
        self,
        current_rotation: np.ndarray,
        target_position: np.ndarray,
        finger_position: np.ndarray,
        dt: float
    ) -> Optional[np.ndarray]:
        """
        Compute the target's next rotation.

        Args:
            current_rotation: Current target rotation (x, y, z, w).
            target_position: Target world position.
            finger_position: Mapped finger world position.
            dt: Elapsed frame duration in seconds.

        Returns:
            New rotation, or None when the finger is (nearly) straight above
            or below the target and no heading can be derived.
        """
        direction = horizontal_direction(target_position, finger_position)
        if float(np.dot(direction, direction)) < self.epsilon_sq:
            logger.debug("Degenerate facing direction, rotation unchanged")
            return None

        desired = look_rotation(direction)
        return slerp(current_rotation, desired, dt * self.rotation_speed)
