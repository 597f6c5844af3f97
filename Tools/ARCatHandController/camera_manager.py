"""
Webcam source for the desktop harness.

Delivers each captured frame twice: BGR for OpenCV drawing and RGB for the
hand detector. A front-camera AR feed is mirrored, so the harness mirrors
the webcam the same way to keep the mapper's ``mirrored`` setting valid.
"""

import sys
import time
from dataclasses import dataclass
from typing import Iterator, Optional

import cv2
import numpy as np

from .config import CAMERA_FPS, CAMERA_HEIGHT, CAMERA_WIDTH, DEFAULT_CAMERA_INDEX
from .logger import get_logger

logger = get_logger("CameraManager")


class CameraError(Exception):
    """Raised when the webcam cannot be opened or read."""
    pass


@dataclass(frozen=True)
class CapturedFrame:
    """
    One webcam frame.

    Attributes:
        bgr: Frame for display, as returned by OpenCV (mirrored if enabled).
        rgb: Same frame converted for MediaPipe.
        timestamp: Capture time (time.monotonic).
        index: Running frame number, starting at 1.
    """
    bgr: np.ndarray
    rgb: np.ndarray
    timestamp: float
    index: int

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        return self.bgr.shape[1], self.bgr.shape[0]


class CameraManager:
    """
    OpenCV VideoCapture wrapper.

    Usage:
        with CameraManager(mirror=True) as camera:
            for frame in camera.frames():
                detector.detect_async(frame.rgb, int(frame.timestamp * 1000))
    """

    def __init__(
        self,
        camera_index: int = DEFAULT_CAMERA_INDEX,
        width: int = CAMERA_WIDTH,
        height: int = CAMERA_HEIGHT,
        fps: int = CAMERA_FPS,
        mirror: bool = True
    ):
        """
        Args:
            camera_index: Camera device index.
            width: Requested capture width.
            height: Requested capture height.
            fps: Requested frame rate.
            mirror: Flip frames horizontally (selfie view).
        """
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.fps = fps
        self.mirror = mirror

        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_index = 0
        self._failed_reads = 0

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    @property
    def frame_size(self) -> tuple[int, int]:
        """Negotiated (width, height), or the requested size while closed."""
        if self._capture is None:
            return self.width, self.height
        return (
            int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)) or self.width,
            int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self.height
        )

    @property
    def frame_count(self) -> int:
        return self._frame_index

    def open(self) -> None:
        """
        Open the webcam.

        Raises:
            CameraError: If the device cannot be opened.
        """
        if self._capture is not None:
            return

        # DirectShow opens much faster than MSMF on Windows
        backend = cv2.CAP_DSHOW if sys.platform == "win32" else cv2.CAP_ANY
        capture = cv2.VideoCapture(self.camera_index, backend)
        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Failed to open camera {self.camera_index}")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        capture.set(cv2.CAP_PROP_FPS, self.fps)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._capture = capture
        self._frame_index = 0
        self._failed_reads = 0

        w, h = self.frame_size
        if (w, h) != (self.width, self.height):
            logger.warning(f"Requested {self.width}x{self.height}, camera gave {w}x{h}")
        logger.info(f"Camera {self.camera_index} opened at {w}x{h} (mirror={self.mirror})")

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera {self.camera_index} closed after {self._frame_index} frames")

    def read(self) -> Optional[CapturedFrame]:
        """
        Grab the next frame.

        Returns:
            CapturedFrame, or None when the driver returned no image.

        Raises:
            CameraError: If the camera is not open.
        """
        if self._capture is None:
            raise CameraError("Camera is not open")

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            self._failed_reads += 1
            logger.warning(f"Camera read failed ({self._failed_reads} so far)")
            return None

        if self.mirror:
            bgr = cv2.flip(bgr, 1)

        self._frame_index += 1
        return CapturedFrame(
            bgr=bgr,
            rgb=cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB),
            timestamp=time.monotonic(),
            index=self._frame_index
        )

    def frames(self) -> Iterator[CapturedFrame]:
        """Yield frames until the camera is closed; failed reads are skipped."""
        while self._capture is not None:
            frame = self.read()
            if frame is not None:
                yield frame

    def __enter__(self) -> "CameraManager":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
