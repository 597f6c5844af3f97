"""
Cat interaction state machine for ARCatHandController.

Turns the smoothed gesture stream into animation triggers. Play and Sleep
need the gesture to be held for a short time, Walk reacts immediately, and
an idle variant is picked at random when nobody has interacted for a while.
"""

import random
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

from .config import InteractionTimings
from .gesture_types import GestureType, PASSIVE_GESTURES
from .logger import get_logger

logger = get_logger("InteractionStateMachine")

TRIGGER_PLAY = "Play"
TRIGGER_SLEEP = "Sleep"
TRIGGER_WALK = "Walk"
DEFAULT_ANIMATION = "Idle"


class InteractionState(Enum):
    """Animation state of the cat."""
    NONE = auto()   # Cleared after walking, no animation requested
    IDLE = auto()   # One of the idle variants
    PLAY = auto()
    SLEEP = auto()
    WALK = auto()


_STATE_BY_ANIMATION = {
    "": InteractionState.NONE,
    TRIGGER_PLAY: InteractionState.PLAY,
    TRIGGER_SLEEP: InteractionState.SLEEP,
    TRIGGER_WALK: InteractionState.WALK,
}


def state_for_animation(animation: str) -> InteractionState:
    """Map an animation/trigger name to its interaction state."""
    return _STATE_BY_ANIMATION.get(animation, InteractionState.IDLE)


@dataclass
class AnimationTrigger:
    """
    Event emitted once per state transition.

    Attributes:
        trigger: Animator trigger to set (destination state or idle variant).
        state: Destination state.
        cancel: Pending triggers the animator should reset first.
        gesture: Gesture that caused the transition.
        timestamp: Time of the transition.
    """
    trigger: str
    state: InteractionState
    cancel: tuple[str, ...] = ()
    gesture: Optional[GestureType] = None
    timestamp: float = field(default_factory=time.monotonic)


class InteractionStateMachine:
    """
    Decides cat animation transitions from smoothed gestures.

    Rules per frame:
    - Hold time grows while the same active gesture repeats and resets on
      change; NoHand/Unknown frames leave it untouched.
    - NoHand/Unknown: leave Walk, and switch idle variant every idle interval.
    - OpenPalm held -> Play, Pointing held -> Sleep (both cancel a pending Walk).
    - Peace or Fist -> Walk immediately.

    The machine never talks to the animator directly; it returns
    AnimationTrigger values and optionally hands them to a callback.
    """

    def __init__(
        self,
        timings: Optional[InteractionTimings] = None,
        rng: Optional[random.Random] = None,
        start_time: Optional[float] = None
    ):
        """
        Initialize interaction state machine.

        Args:
            timings: Hold time, idle interval and idle variants. Defaults if None.
            rng: Random source for idle variant selection.
            start_time: Reference time for the first idle switch.
        """
        self.timings = timings or InteractionTimings()
        if not self.timings.idle_animations:
            raise ValueError("idle_animations must not be empty")

        self._rng = rng or random.Random()
        self._on_trigger: Optional[Callable[[AnimationTrigger], None]] = None

        self._current_animation = DEFAULT_ANIMATION
        self._last_gesture = GestureType.NO_HAND
        self._hold_time = 0.0
        self._idle_switch_time = time.monotonic() if start_time is None else start_time

        logger.debug(
            f"InteractionStateMachine initialized (hold={self.timings.hold_time}s, "
            f"idle_interval={self.timings.idle_interval}s, "
            f"idle_variants={len(self.timings.idle_animations)})"
        )

    @property
    def state(self) -> InteractionState:
        return state_for_animation(self._current_animation)

    @property
    def current_animation(self) -> str:
        """Name of the last requested animation, '' when cleared."""
        return self._current_animation

    @property
    def hold_time(self) -> float:
        return self._hold_time

    @property
    def last_gesture(self) -> GestureType:
        return self._last_gesture

    @property
    def idle_switch_time(self) -> float:
        return self._idle_switch_time

    def set_callbacks(self, on_trigger: Optional[Callable[[AnimationTrigger], None]] = None) -> None:
        """
        Set event callback.

        Args:
            on_trigger: Called for every emitted trigger.
        """
        self._on_trigger = on_trigger

    def update(
        self,
        gesture: GestureType,
        dt: float,
        now: Optional[float] = None
    ) -> list[AnimationTrigger]:
        """
        Advance the state machine by one processed frame.

        Args:
            gesture: Smoothed gesture of this frame.
            dt: Elapsed frame duration in seconds.
            now: Current time in seconds (monotonic). Defaults to now.

        Returns:
            Triggers emitted this frame (zero or one).
        """
        if now is None:
            now = time.monotonic()

        triggers: list[AnimationTrigger] = []
        state = self.state

        if gesture in PASSIVE_GESTURES:
            # Hold bookkeeping is frozen while no usable gesture is seen
            if state == InteractionState.WALK:
                self._current_animation = ""
                logger.debug("Hand gone while walking, animation cleared")

            if now - self._idle_switch_time >= self.timings.idle_interval:
                variant = self._rng.choice(self.timings.idle_animations)
                self._idle_switch_time = now
                triggers.append(self._transition(variant, gesture, now))
                logger.info(f"Idle switch: {variant}")

        else:
            if gesture == self._last_gesture:
                self._hold_time += dt
            else:
                self._hold_time = 0.0
            self._last_gesture = gesture

            if gesture == GestureType.OPEN_PALM:
                if self._hold_time >= self.timings.hold_time and state != InteractionState.PLAY:
                    self._hold_time = 0.0
                    triggers.append(self._transition(TRIGGER_PLAY, gesture, now, cancel=(TRIGGER_WALK,)))

            elif gesture == GestureType.POINTING:
                if self._hold_time >= self.timings.hold_time and state != InteractionState.SLEEP:
                    self._hold_time = 0.0
                    triggers.append(self._transition(TRIGGER_SLEEP, gesture, now, cancel=(TRIGGER_WALK,)))

            elif gesture in (GestureType.PEACE, GestureType.FIST):
                if state != InteractionState.WALK:
                    self._hold_time = 0.0
                    triggers.append(self._transition(TRIGGER_WALK, gesture, now))

        for trigger in triggers:
            self._fire_callback(trigger)

        return triggers

    def _transition(
        self,
        animation: str,
        gesture: GestureType,
        now: float,
        cancel: tuple[str, ...] = ()
    ) -> AnimationTrigger:
        """Switch to an animation and build its trigger event."""
        previous = self._current_animation
        self._current_animation = animation
        logger.debug(f"Transition {previous or '<none>'} -> {animation} ({gesture.value})")
        return AnimationTrigger(
            trigger=animation,
            state=state_for_animation(animation),
            cancel=cancel,
            gesture=gesture,
            timestamp=now
        )

    def _fire_callback(self, trigger: AnimationTrigger) -> None:
        """Fire the trigger callback, keeping the machine alive on errors."""
        if not self._on_trigger:
            return
        try:
            self._on_trigger(trigger)
        except Exception as e:
            logger.error(f"Error in trigger callback: {e}")

    def reset(self, now: Optional[float] = None) -> None:
        """Reset to the initial state (call when the target is lost)."""
        self._current_animation = DEFAULT_ANIMATION
        self._last_gesture = GestureType.NO_HAND
        self._hold_time = 0.0
        self._idle_switch_time = time.monotonic() if now is None else now
        logger.debug("InteractionStateMachine reset")
