import cv2
import numpy as np
import pytest

from ARCatHandController.camera_manager import CameraError, CameraManager


class FakeCapture:
    def __init__(self, index, backend=None, opened=True, frames=None):
        self.opened = opened
        self.frames = list(frames or [])
        self.props = {cv2.CAP_PROP_FRAME_WIDTH: 0, cv2.CAP_PROP_FRAME_HEIGHT: 0}
        self.released = False

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


def gradient_frame():
    # Blue channel rises from left to right
    frame = np.zeros((4, 8, 3), dtype=np.uint8)
    frame[:, :, 0] = np.arange(8, dtype=np.uint8) * 10
    return frame


@pytest.fixture
def capture(monkeypatch):
    holder = {}

    def factory(index, backend=None):
        holder["capture"] = FakeCapture(index, backend, frames=[gradient_frame(), None])
        return holder["capture"]

    monkeypatch.setattr(cv2, "VideoCapture", factory)
    return holder


def test_read_mirrors_and_converts(capture):
    camera = CameraManager(width=8, height=4, mirror=True)
    camera.open()

    frame = camera.read()

    assert frame.index == 1
    assert frame.size == (8, 4)
    # Mirrored: the brightest blue column is now on the left
    assert frame.bgr[0, 0, 0] == 70
    # RGB puts blue in the last channel
    assert frame.rgb[0, 0, 2] == 70
    assert camera.frame_count == 1


def test_failed_read_returns_none(capture):
    camera = CameraManager(mirror=False)
    camera.open()
    camera.read()
    assert camera.read() is None
    assert camera.frame_count == 1


def test_negotiated_size(capture):
    with CameraManager(width=1280, height=720) as camera:
        assert camera.frame_size == (1280, 720)
    assert capture["capture"].released
    assert not camera.is_open


def test_open_failure(monkeypatch):
    monkeypatch.setattr(cv2, "VideoCapture", lambda index, backend=None: FakeCapture(index, opened=False))
    with pytest.raises(CameraError):
        CameraManager(camera_index=3).open()


def test_read_requires_open_camera():
    with pytest.raises(CameraError):
        CameraManager().read()
