from types import SimpleNamespace

import numpy as np
import pytest

from ARCatHandController.hand_detector import DetectorError, HandDetector, convert_result


def fake_result(hands, handedness=None):
    return SimpleNamespace(
        hand_landmarks=[
            [SimpleNamespace(x=x, y=y, z=z) for x, y, z in hand]
            for hand in hands
        ],
        handedness=handedness or [],
    )


def test_convert_empty_result():
    frame = convert_result(fake_result([]), 42)
    assert frame.hand is None
    assert not frame.has_hand
    assert frame.timestamp_ms == 42


def test_convert_keeps_first_hand_and_handedness():
    first = [(0.1 * i / 21, 0.5, -0.01) for i in range(21)]
    second = [(0.9, 0.9, 0.0)] * 21
    handedness = [[SimpleNamespace(category_name="Left", score=0.93)]]

    frame = convert_result(fake_result([first, second], handedness), 7)

    assert frame.has_hand
    assert frame.hand.is_complete
    assert frame.hand.handedness == "Left"
    assert frame.hand.score == pytest.approx(0.93)
    assert frame.hand.wrist.y == pytest.approx(0.5)


def test_result_callback_forwards_frames():
    detector = HandDetector()
    frames = []
    detector.set_result_callback(frames.append)

    detector._handle_result(fake_result([[(0.5, 0.5, 0.0)] * 21]), None, 100)

    assert len(frames) == 1
    assert frames[0].timestamp_ms == 100


def test_detect_before_initialize_fails():
    detector = HandDetector()
    with pytest.raises(DetectorError):
        detector.detect_async(np.zeros((4, 4, 3), dtype=np.uint8), 0)

