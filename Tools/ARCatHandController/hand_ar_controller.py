"""
Hand-driven AR cat controller.

Connects the asynchronous hand detector to the gesture pipeline, the
target mapper and the interaction state machine for one tracked target.

Threading: the detector delivers results on its own worker thread. Those
results are only put on a queue; the thread that owns the controller drains
it in pump() and is the single writer of the gesture window, the
interaction state and the target transform.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from queue import Empty, Queue
from typing import Callable, Optional, Protocol

import numpy as np

from .animation_triggers import AnimatorTriggerAdapter, TriggerSink
from .detection_gate import DetectionGate
from .gesture_recognizer import GestureRecognizer
from .gesture_types import GestureType
from .hand_landmarks import HandFrame
from .interaction_state_machine import AnimationTrigger, InteractionStateMachine
from .logger import get_logger
from .profile_loader import ControllerProfile, create_default_profile
from .target_mapper import ObserverCamera, TargetMapper
from .target_orientation import IDENTITY_ROTATION, FacingController

logger = get_logger("HandARController")


class PipelineIssue(Enum):
    """Recoverable conditions hit while processing a detection result."""
    INVALID_HAND = auto()        # Fewer than 21 landmarks
    NO_TARGET = auto()           # Result arrived before a target was anchored
    MAPPING_DEGENERATE = auto()  # Finger straight above/below target, no heading


class AsyncDetector(Protocol):
    """Detector surface the controller relies on (see HandDetector)."""

    def set_result_callback(self, callback: Optional[Callable[[HandFrame], None]]) -> None:
        ...

    def detect_async(self, rgb_image: np.ndarray, timestamp_ms: int) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class TrackedTarget:
    """
    The anchored character.

    Attributes:
        name: Name of the tracked image / object, used to match lost events.
        position: World position.
        rotation: World rotation quaternion (x, y, z, w).
        trigger_sink: Animation backend of the character.
    """
    name: str
    position: np.ndarray
    rotation: np.ndarray = field(default_factory=lambda: IDENTITY_ROTATION.copy())
    trigger_sink: Optional[TriggerSink] = None

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.rotation = np.asarray(self.rotation, dtype=np.float64).reshape(4)


class HandARController:
    """
    Drives a tracked AR character from a hand.

    Usage:
        controller = HandARController(detector, camera_provider)
        controller.on_target_acquired(TrackedTarget("cat", position, trigger_sink=animator))

        # Per rendered frame, on the owning thread:
        controller.submit_frame(rgb_frame)
        controller.pump()

        controller.shutdown()
    """

    def __init__(
        self,
        detector: Optional[AsyncDetector],
        camera_provider: Callable[[], ObserverCamera],
        profile: Optional[ControllerProfile] = None,
        state_machine: Optional[InteractionStateMachine] = None,
        track_skeleton: bool = False
    ):
        """
        Initialize controller.

        Args:
            detector: Asynchronous landmark detector, None if unavailable.
            camera_provider: Returns the current observer camera.
            profile: Tuning profile. Defaults if None.
            state_machine: Pre-built state machine (tests inject time/random).
            track_skeleton: Also map all 21 landmarks to world space.
        """
        self.profile = profile or create_default_profile()
        self._camera_provider = camera_provider
        self._track_skeleton = track_skeleton

        self._recognizer = GestureRecognizer(
            thresholds=self.profile.gesture_thresholds(),
            buffer_size=self.profile.gesture_buffer_size
        )
        self._mapper = TargetMapper(self.profile.mapper_settings())
        self._facing = FacingController(rotation_speed=self.profile.rotation_speed)
        self._state_machine = state_machine or InteractionStateMachine(self.profile.interaction_timings())
        self._gate = DetectionGate(self.profile.detect_interval)

        self._results: Queue[HandFrame] = Queue()
        self._detector = detector
        if self._detector is not None:
            self._detector.set_result_callback(self._enqueue_result)

        self._target: Optional[TrackedTarget] = None
        self._last_pump_time: Optional[float] = None

        # Per-frame outputs
        self._gesture = GestureType.NO_HAND
        self._finger_world: Optional[np.ndarray] = None
        self._finger_screen: Optional[np.ndarray] = None
        self._skeleton: Optional[np.ndarray] = None
        self._last_issue: Optional[PipelineIssue] = None
        self._status = "Initializing..."
        self._processed_count = 0

        logger.info("HandARController initialized")

    # ------------------------------------------------------------------
    # Properties

    @property
    def target(self) -> Optional[TrackedTarget]:
        return self._target

    @property
    def is_anchored(self) -> bool:
        return self._target is not None

    @property
    def recognizer(self) -> GestureRecognizer:
        return self._recognizer

    @property
    def state_machine(self) -> InteractionStateMachine:
        return self._state_machine

    @property
    def gate(self) -> DetectionGate:
        return self._gate

    @property
    def gesture(self) -> GestureType:
        """Smoothed gesture of the last processed result."""
        return self._gesture

    @property
    def finger_world_position(self) -> Optional[np.ndarray]:
        """Mapped index fingertip, None when no hand was present."""
        return self._finger_world

    @property
    def skeleton(self) -> Optional[np.ndarray]:
        """World positions of all landmarks (only with track_skeleton)."""
        return self._skeleton

    @property
    def last_issue(self) -> Optional[PipelineIssue]:
        return self._last_issue

    @property
    def status_text(self) -> str:
        """Human-readable status for a debug overlay."""
        return self._status

    @property
    def processed_count(self) -> int:
        return self._processed_count

    # ------------------------------------------------------------------
    # Target lifecycle

    def on_target_acquired(self, target: TrackedTarget, now: Optional[float] = None) -> bool:
        """
        Anchor a newly tracked target.

        Returns:
            True if anchored, False if another target is already anchored.
        """
        if self._target is not None:
            logger.debug(f"Ignoring target {target.name}, {self._target.name} already anchored")
            return False

        self._target = target
        self._state_machine.reset(now)
        if target.trigger_sink is not None:
            self._state_machine.set_callbacks(on_trigger=AnimatorTriggerAdapter(target.trigger_sink))
        else:
            self._state_machine.set_callbacks(on_trigger=None)

        self._status = "CAT FOUND & ANCHORED!"
        logger.info(f"Target anchored: {target.name} at {np.round(target.position, 3).tolist()}")
        return True

    def on_target_lost(self, name: str, now: Optional[float] = None) -> bool:
        """
        Release the anchored target if ``name`` matches it.

        Returns:
            True if the anchored target was released.
        """
        if self._target is None or self._target.name != name:
            return False

        logger.info(f"Target lost: {name}")
        self._target = None
        self._state_machine.set_callbacks(on_trigger=None)
        self._state_machine.reset(now)
        self._finger_world = None
        self._finger_screen = None
        self._skeleton = None
        self._status = "CAT LOST"
        return True

    # ------------------------------------------------------------------
    # Detection

    def submit_frame(self, rgb_image: np.ndarray, now: Optional[float] = None) -> bool:
        """
        Offer a camera frame to the detector.

        Frames are skipped while a detection is pending or when they come
        sooner than the detect interval.

        Returns:
            True if the frame was submitted.
        """
        if now is None:
            now = time.monotonic()

        if self._detector is None:
            self._status = "NO HAND MODEL"
            return False

        if not self._gate.try_acquire(now):
            return False

        try:
            self._detector.detect_async(rgb_image, int(now * 1000))
        except Exception as e:
            logger.warning(f"Detection submit failed: {e}")
            self._status = f"DETECT FAILED: {e}"
            self._gate.release()
            return False

        return True

    def _enqueue_result(self, frame: HandFrame) -> None:
        """Detector-thread callback; hands the result to the owning thread."""
        self._results.put(frame)

    def deliver(self, frame: HandFrame) -> None:
        """Queue a result produced outside the attached detector."""
        self._results.put(frame)

    def pump(self, now: Optional[float] = None, dt: Optional[float] = None) -> list[AnimationTrigger]:
        """
        Apply all queued detection results. Call from the owning thread.

        Args:
            now: Current time in seconds (monotonic).
            dt: Frame duration. Defaults to the time since the last pump.

        Returns:
            Animation triggers emitted while applying the results.
        """
        if now is None:
            now = time.monotonic()
        if dt is None:
            dt = 0.0 if self._last_pump_time is None else max(0.0, now - self._last_pump_time)
        self._last_pump_time = now

        triggers: list[AnimationTrigger] = []
        while True:
            try:
                frame = self._results.get_nowait()
            except Empty:
                break

            try:
                triggers.extend(self._apply_result(frame, now, dt))
            except Exception as e:
                logger.exception(f"Result error: {e}")
                self._status = f"Result error: {e}"
            finally:
                self._gate.release()

        return triggers

    def _apply_result(self, frame: HandFrame, now: float, dt: float) -> list[AnimationTrigger]:
        """Run one detection result through the pipeline."""
        target = self._target
        if target is None:
            self._last_issue = PipelineIssue.NO_TARGET
            self._status = "Waiting for cat target..."
            logger.debug("Dropping detection result, no target anchored")
            return []

        self._processed_count += 1
        self._last_issue = None
        self._finger_world = None
        self._finger_screen = None
        self._skeleton = None

        hand = frame.hand
        result = self._recognizer.recognize(hand)
        self._gesture = result.gesture

        if frame.has_hand and not result.is_valid:
            self._last_issue = PipelineIssue.INVALID_HAND

        if result.is_valid:
            observer = self._camera_provider()
            finger = self._mapper.map_landmark(hand.index_tip, target.position, observer)
            self._finger_world = finger
            self._finger_screen = observer.world_to_screen(finger)

            rotation = self._facing.update(target.rotation, target.position, finger, dt)
            if rotation is None:
                self._last_issue = PipelineIssue.MAPPING_DEGENERATE
            else:
                target.rotation = rotation

            if self._track_skeleton:
                self._skeleton = self._mapper.map_hand(hand, target.position, observer)

        triggers = self._state_machine.update(result.gesture, dt, now)
        self._status = self._format_status()
        return triggers

    def _format_status(self) -> str:
        animation = self._state_machine.current_animation or "-"
        lines = [
            f"HAND: {self._gesture.value}",
            f"CAT: {animation}",
        ]
        if self._finger_screen is not None:
            sx, sy, sz = self._finger_screen
            lines.append(f"Finger Pos: X:{sx:.0f} Y:{sy:.0f} Z:{sz:.2f}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Shutdown

    def shutdown(self) -> None:
        """Release the detector and drop pending results."""
        if self._detector is not None:
            self._detector.set_result_callback(None)
            self._detector.close()
            self._detector = None

        while True:
            try:
                self._results.get_nowait()
            except Empty:
                break

        self._gate.reset()
        logger.info(
            f"HandARController stopped (processed={self._processed_count}, "
            f"submitted={self._gate.submitted}, skipped={self._gate.skipped_interval + self._gate.skipped_busy})"
        )
