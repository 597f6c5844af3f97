"""Synthetic hands and fakes shared by the tests."""

import random

import numpy as np
import pytest

from ARCatHandController.hand_landmarks import HandLandmarks, LandmarkIndex
from ARCatHandController.interaction_state_machine import InteractionStateMachine
from ARCatHandController.target_mapper import ObserverCamera

WRIST = (0.5, 0.9)
# x of each non-thumb finger column
FINGER_X = {"index": 0.45, "middle": 0.5, "ring": 0.55, "pinky": 0.6}
FINGER_BASE = {
    "index": LandmarkIndex.INDEX_MCP,
    "middle": LandmarkIndex.MIDDLE_MCP,
    "ring": LandmarkIndex.RING_MCP,
    "pinky": LandmarkIndex.PINKY_MCP,
}
BASE_Y = 0.6


def make_hand(
    thumb: bool = False,
    index: bool = False,
    middle: bool = False,
    ring: bool = False,
    pinky: bool = False,
    offset_x: float = 0.0
) -> HandLandmarks:
    """
    Build an upright hand in image coordinates (y down).

    Straight fingers continue upwards from their MCP, curled ones fold back
    down towards the wrist. A straight thumb sticks out sideways, a curled
    one rests on the index MCP.
    """
    points = np.zeros((21, 3))
    points[LandmarkIndex.WRIST] = (*WRIST, 0.0)

    straight = {"index": index, "middle": middle, "ring": ring, "pinky": pinky}
    for name, base in FINGER_BASE.items():
        x = FINGER_X[name]
        tip_y = 0.3 if straight[name] else 0.75
        points[base] = (x, BASE_Y, 0.0)
        points[base + 1] = (x, BASE_Y + (tip_y - BASE_Y) / 3, 0.0)
        points[base + 2] = (x, BASE_Y + 2 * (tip_y - BASE_Y) / 3, 0.0)
        points[base + 3] = (x, tip_y, 0.0)

    thumb_tip = (0.2, 0.6) if thumb else (0.46, 0.61)
    points[LandmarkIndex.THUMB_CMC] = (0.42, 0.82, 0.0)
    points[LandmarkIndex.THUMB_MCP] = (0.38, 0.74, 0.0)
    points[LandmarkIndex.THUMB_IP] = ((0.38 + thumb_tip[0]) / 2, (0.74 + thumb_tip[1]) / 2, 0.0)
    points[LandmarkIndex.THUMB_TIP] = (*thumb_tip, 0.0)

    points[:, 0] += offset_x
    return HandLandmarks.from_points(points, handedness="Right", score=0.98)


@pytest.fixture
def open_palm():
    return make_hand(thumb=True, index=True, middle=True, ring=True, pinky=True)


@pytest.fixture
def fist():
    return make_hand()


@pytest.fixture
def pointing():
    return make_hand(index=True)


@pytest.fixture
def peace():
    return make_hand(index=True, middle=True)


@pytest.fixture
def incomplete_hand(open_palm):
    return HandLandmarks(landmarks=open_palm.landmarks[:10])


@pytest.fixture
def observer():
    """Camera at the origin looking down +z."""
    return ObserverCamera(screen_width=640, screen_height=480)


@pytest.fixture
def state_machine():
    return InteractionStateMachine(rng=random.Random(7), start_time=0.0)


class FakeDetector:
    """In-process stand-in for HandDetector."""

    def __init__(self):
        self.callback = None
        self.timestamps = []
        self.closed = False
        self.fail_with = None

    def set_result_callback(self, callback):
        self.callback = callback

    def detect_async(self, rgb_image, timestamp_ms):
        if self.fail_with is not None:
            raise self.fail_with
        self.timestamps.append(timestamp_ms)

    def close(self):
        self.closed = True

    def emit(self, frame):
        self.callback(frame)


class RecordingSink:
    """Trigger sink that records every call in order."""

    def __init__(self):
        self.calls = []

    def set_trigger(self, name):
        self.calls.append(("set", name))

    def reset_trigger(self, name):
        self.calls.append(("reset", name))


@pytest.fixture
def fake_detector():
    return FakeDetector()


@pytest.fixture
def sink():
    return RecordingSink()
