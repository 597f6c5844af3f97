"""
Adapters between the interaction state machine and an animation backend.
"""

from typing import Protocol

from .interaction_state_machine import AnimationTrigger
from .logger import get_logger

logger = get_logger("AnimationTriggers")


class TriggerSink(Protocol):
    """Animation backend accepting named triggers (e.g. an Animator)."""

    def set_trigger(self, name: str) -> None:
        ...

    def reset_trigger(self, name: str) -> None:
        ...


class AnimatorTriggerAdapter:
    """
    Forwards AnimationTrigger events to a TriggerSink.

    Cancelled triggers are reset before the new one is set. Triggers are
    fire-and-forget: sink errors are logged and never reach the state
    machine.
    """

    def __init__(self, sink: TriggerSink):
        self.sink = sink
        self.forwarded = 0

    def __call__(self, trigger: AnimationTrigger) -> None:
        try:
            for name in trigger.cancel:
                self.sink.reset_trigger(name)
            self.sink.set_trigger(trigger.trigger)
            self.forwarded += 1
        except Exception as e:
            logger.error(f"Animation sink rejected trigger {trigger.trigger}: {e}")


class LoggingTriggerSink:
    """Sink that only logs and remembers triggers, used without a renderer."""

    def __init__(self):
        self.history: list[str] = []

    def set_trigger(self, name: str) -> None:
        self.history.append(name)
        logger.info(f"SetTrigger({name})")

    def reset_trigger(self, name: str) -> None:
        logger.debug(f"ResetTrigger({name})")
