"""
ARCatHandController - Hand gestures drive an image-anchored AR cat.

MediaPipe hand landmarks are classified into gestures, smoothed over a
short window and fed to an interaction state machine that fires animation
triggers, while the index fingertip is mapped into world space so the cat
turns to face it.
"""

__version__ = "1.0.0"
__author__ = "AROverlay Team"

from .profile_loader import ControllerProfile, ProfileLoadError, load_profile, create_default_profile
from .hand_landmarks import HandFrame, HandLandmarks, Landmark, LandmarkIndex
from .hand_detector import HandDetector, DetectorError
from .landmark_geometry import FingerStates, compute_finger_states
from .gesture_types import GestureType
from .gesture_smoother import GestureSmoother
from .gesture_recognizer import GestureRecognizer, GestureResult, classify_finger_states
from .target_mapper import ObserverCamera, TargetMapper
from .target_orientation import FacingController
from .interaction_state_machine import AnimationTrigger, InteractionState, InteractionStateMachine
from .animation_triggers import AnimatorTriggerAdapter, LoggingTriggerSink
from .detection_gate import DetectionGate
from .hand_ar_controller import HandARController, PipelineIssue, TrackedTarget

__all__ = [
    "ControllerProfile",
    "ProfileLoadError",
    "load_profile",
    "create_default_profile",
    "HandFrame",
    "HandLandmarks",
    "Landmark",
    "LandmarkIndex",
    "HandDetector",
    "DetectorError",
    "FingerStates",
    "compute_finger_states",
    "GestureType",
    "GestureSmoother",
    "GestureRecognizer",
    "GestureResult",
    "classify_finger_states",
    "ObserverCamera",
    "TargetMapper",
    "FacingController",
    "AnimationTrigger",
    "InteractionState",
    "InteractionStateMachine",
    "AnimatorTriggerAdapter",
    "LoggingTriggerSink",
    "DetectionGate",
    "HandARController",
    "PipelineIssue",
    "TrackedTarget",
]
