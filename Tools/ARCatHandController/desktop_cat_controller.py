#!/usr/bin/env python3
"""
Desktop Cat Controller

Runs the hand-driven cat controller against a webcam, with a virtual cat
placed in front of a virtual camera. Animation triggers are logged and the
status text is drawn into a debug window.

Usage:
    python -m ARCatHandController.desktop_cat_controller [--profile <path>] [--camera <index>] [--debug]

Exit Codes:
    0 - Success
    1 - Profile error
    2 - Camera error
    3 - Runtime error
"""

import argparse
import signal
import sys
import time
from typing import Optional

import cv2
import numpy as np

from .animation_triggers import LoggingTriggerSink
from .camera_manager import CameraError, CameraManager
from .config import (
    CAMERA_HEIGHT,
    CAMERA_WIDTH,
    DEFAULT_CAMERA_INDEX,
    EXIT_CAMERA_ERROR,
    EXIT_PROFILE_ERROR,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
)
from .hand_ar_controller import HandARController, TrackedTarget
from .hand_detector import DetectorError, HandDetector
from .logger import get_logger, setup_logging
from .profile_loader import ControllerProfile, ProfileLoadError, create_default_profile, load_profile
from .target_mapper import ObserverCamera
from .target_orientation import quaternion_to_matrix, yaw_degrees

VIRTUAL_TARGET_NAME = "cu_cat"
VIRTUAL_TARGET_POSITION = (0.0, -0.1, 1.0)  # meters in front of the camera


class DesktopCatApp:
    """
    Webcam harness around HandARController.

    Owns the camera, the detector and the controller; the main loop is the
    single thread that applies detection results.
    """

    def __init__(
        self,
        profile: ControllerProfile,
        camera_index: int = DEFAULT_CAMERA_INDEX,
        width: int = CAMERA_WIDTH,
        height: int = CAMERA_HEIGHT,
        debug: bool = False
    ):
        self.profile = profile
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.debug = debug

        self._logger = get_logger("App")
        self._running = False

        self._camera: Optional[CameraManager] = None
        self._controller: Optional[HandARController] = None
        self._observer: Optional[ObserverCamera] = None
        self._sink = LoggingTriggerSink()

        self._frame_count = 0
        self._start_time = 0.0

    def initialize(self) -> None:
        """Initialize camera, detector and controller."""
        self._logger.info("Initializing desktop cat controller...")

        self._camera = CameraManager(
            camera_index=self.camera_index,
            width=self.width,
            height=self.height,
            mirror=self.profile.is_camera_mirrored
        )
        self._camera.open()

        screen_width, screen_height = self._camera.frame_size
        self._observer = ObserverCamera(screen_width=screen_width, screen_height=screen_height)

        detector = HandDetector(
            model_path=self.profile.model_path,
            max_num_hands=self.profile.num_hands,
            min_detection_confidence=self.profile.min_hand_detection_confidence,
            min_presence_confidence=self.profile.min_hand_presence_confidence,
            min_tracking_confidence=self.profile.min_tracking_confidence
        )
        detector.initialize()

        self._controller = HandARController(
            detector=detector,
            camera_provider=lambda: self._observer,
            profile=self.profile
        )
        self._controller.on_target_acquired(TrackedTarget(
            name=VIRTUAL_TARGET_NAME,
            position=np.array(VIRTUAL_TARGET_POSITION),
            trigger_sink=self._sink
        ))

        self._logger.info("Desktop cat controller initialized")

    def run(self) -> None:
        """Run the main loop."""
        self._running = True
        self._start_time = time.perf_counter()
        self._logger.info("Starting main loop...")

        try:
            while self._running:
                self._process_frame()

                if self.debug:
                    key = cv2.waitKey(1) & 0xFF
                    if key == ord('q') or key == 27:  # q or ESC
                        self._logger.info("Quit key pressed")
                        break
        except KeyboardInterrupt:
            self._logger.info("Interrupted by user")
        finally:
            self.stop()

    def _process_frame(self) -> None:
        """Capture, submit and apply one frame."""
        if self._camera is None or self._controller is None:
            return

        frame = self._camera.read()
        if frame is None:
            return
        self._frame_count += 1

        self._controller.submit_frame(frame.rgb, now=frame.timestamp)
        self._controller.pump(now=frame.timestamp)

        if self.debug:
            self._show_debug_frame(frame.bgr)

    def _to_pixel(self, world: np.ndarray, frame_shape: tuple) -> tuple[int, int]:
        """Project a world point onto the (possibly mirrored) display image."""
        h, w = frame_shape[:2]
        sx, sy, _ = self._observer.world_to_screen(world)
        if self.profile.is_camera_mirrored:
            sx = w - sx
        # Screen y grows upwards, image rows grow downwards
        return int(sx), int(h - sy)

    def _show_debug_frame(self, frame: np.ndarray) -> None:
        """Draw the virtual cat, its heading, the finger and the status text."""
        display = frame.copy()
        target = self._controller.target

        if target is not None and self._observer is not None:
            heading = target.position + quaternion_to_matrix(target.rotation)[:, 2] * 0.15
            p0 = self._to_pixel(target.position, display.shape)
            p1 = self._to_pixel(heading, display.shape)
            cv2.circle(display, p0, 12, (0, 200, 255), -1)
            cv2.arrowedLine(display, p0, p1, (0, 200, 255), 2)
            cv2.putText(
                display, f"yaw {yaw_degrees(target.rotation):.0f}", (p0[0] + 15, p0[1]),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 200, 255), 1
            )

            finger = self._controller.finger_world_position
            if finger is not None:
                cv2.circle(display, self._to_pixel(finger, display.shape), 6, (255, 0, 255), -1)

        for i, line in enumerate(self._controller.status_text.splitlines()):
            cv2.putText(
                display, line, (10, 30 + 25 * i),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2
            )

        cv2.imshow("Cat Controller Debug", display)

    def stop(self) -> None:
        """Stop the loop and release resources."""
        if not self._running and self._controller is None and self._camera is None:
            return
        self._running = False
        self._logger.info("Stopping desktop cat controller...")

        if self._controller:
            self._controller.shutdown()
            self._controller = None

        if self._camera:
            self._camera.close()
            self._camera = None

        if self.debug:
            cv2.destroyAllWindows()

        if self._frame_count > 0:
            elapsed = time.perf_counter() - self._start_time
            avg_fps = self._frame_count / elapsed if elapsed > 0 else 0
            self._logger.info(
                f"Stopped. Processed {self._frame_count} frames in {elapsed:.1f}s "
                f"({avg_fps:.1f} FPS average), triggers: {len(self._sink.history)}"
            )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Desktop Cat Controller - drive a virtual AR cat with your hand",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0  Success
  1  Profile error (file not found, invalid JSON)
  2  Camera error (camera not available)
  3  Runtime error (unexpected error)
"""
    )

    parser.add_argument(
        "--profile", "-p",
        default=None,
        help="Path to JSON profile file (defaults if omitted)"
    )

    parser.add_argument(
        "--camera", "-c",
        type=int,
        default=DEFAULT_CAMERA_INDEX,
        help="Camera index"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug mode with visualization window"
    )

    parser.add_argument(
        "--width",
        type=int,
        default=CAMERA_WIDTH,
        help="Requested capture width"
    )

    parser.add_argument(
        "--height",
        type=int,
        default=CAMERA_HEIGHT,
        help="Requested capture height"
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = parse_args(argv)

    logger = setup_logging(debug=args.debug)
    logger.info("Desktop Cat Controller starting...")

    try:
        profile = load_profile(args.profile) if args.profile else create_default_profile()
    except ProfileLoadError as e:
        logger.error(f"Failed to load profile: {e}")
        return EXIT_PROFILE_ERROR

    app: Optional[DesktopCatApp] = None

    try:
        app = DesktopCatApp(
            profile=profile,
            camera_index=args.camera,
            width=args.width,
            height=args.height,
            debug=args.debug
        )

        def signal_handler(sig, frame):
            logger.info("Received shutdown signal")
            if app:
                app.stop()

        signal.signal(signal.SIGINT, signal_handler)
        # SIGTERM is not available on Windows
        if sys.platform != 'win32':
            signal.signal(signal.SIGTERM, signal_handler)

        app.initialize()
        app.run()

        return EXIT_SUCCESS

    except CameraError as e:
        logger.error(f"Camera error: {e}")
        return EXIT_CAMERA_ERROR
    except DetectorError as e:
        logger.error(f"Detector error: {e}")
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        logger.exception(f"Runtime error: {e}")
        return EXIT_RUNTIME_ERROR
    finally:
        if app:
            app.stop()


if __name__ == "__main__":
    sys.exit(main())
