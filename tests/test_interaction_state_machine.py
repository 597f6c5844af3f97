import random

import pytest

from ARCatHandController.config import IDLE_ANIMATIONS, InteractionTimings
from ARCatHandController.gesture_types import GestureType
from ARCatHandController.interaction_state_machine import (
    InteractionState,
    InteractionStateMachine,
    state_for_animation,
)

OPEN = GestureType.OPEN_PALM
POINT = GestureType.POINTING
PEACE = GestureType.PEACE
FIST = GestureType.FIST
NO_HAND = GestureType.NO_HAND
UNKNOWN = GestureType.UNKNOWN


def hold(sm, gesture, seconds, now=1.0, dt=0.05):
    """Feed ``gesture`` for ``seconds`` after the first frame; returns all triggers."""
    triggers = sm.update(gesture, dt, now)
    elapsed = 0.0
    while elapsed < seconds - 1e-9:
        now += dt
        elapsed += dt
        triggers += sm.update(gesture, dt, now)
    return triggers


def test_initial_state(state_machine):
    assert state_machine.current_animation == "Idle"
    assert state_machine.state == InteractionState.IDLE
    assert state_machine.last_gesture == NO_HAND
    assert state_machine.hold_time == 0.0


def test_open_palm_below_hold_time_does_nothing(state_machine):
    assert state_machine.update(OPEN, 0.016, 1.0) == []
    assert state_machine.update(OPEN, 0.29, 1.29) == []
    assert state_machine.hold_time == pytest.approx(0.29)
    assert state_machine.state == InteractionState.IDLE


def test_open_palm_held_triggers_play_once(state_machine):
    triggers = hold(state_machine, OPEN, 1.0)

    assert [t.trigger for t in triggers] == ["Play"]
    assert triggers[0].cancel == ("Walk",)
    assert triggers[0].state == InteractionState.PLAY
    assert triggers[0].gesture == OPEN
    assert state_machine.state == InteractionState.PLAY


def test_play_fires_at_hold_threshold(state_machine):
    state_machine.update(OPEN, 0.016, 1.0)
    assert state_machine.update(OPEN, 0.2, 1.2) == []
    triggers = state_machine.update(OPEN, 0.11, 1.31)
    assert [t.trigger for t in triggers] == ["Play"]
    assert state_machine.hold_time == 0.0


def test_pointing_held_triggers_sleep(state_machine):
    triggers = hold(state_machine, POINT, 0.5)
    assert [(t.trigger, t.cancel) for t in triggers] == [("Sleep", ("Walk",))]
    assert state_machine.state == InteractionState.SLEEP


def test_gesture_change_restarts_hold(state_machine):
    hold(state_machine, OPEN, 0.2)
    assert state_machine.update(POINT, 0.2, 2.0) == []
    assert state_machine.hold_time == 0.0


@pytest.mark.parametrize("dropout", [UNKNOWN, NO_HAND])
def test_dropout_frame_keeps_hold(state_machine, dropout):
    state_machine.update(OPEN, 0.1, 1.0)
    state_machine.update(OPEN, 0.1, 1.1)
    state_machine.update(OPEN, 0.1, 1.2)

    assert state_machine.update(dropout, 0.1, 1.3) == []
    assert state_machine.hold_time == pytest.approx(0.2)
    assert state_machine.last_gesture == OPEN

    triggers = state_machine.update(OPEN, 0.15, 1.45)
    assert [t.trigger for t in triggers] == ["Play"]


def test_walk_cancels_pending_hold(state_machine):
    assert hold(state_machine, OPEN, 0.2) == []
    assert state_machine.hold_time > 0.0

    triggers = state_machine.update(FIST, 0.1, 2.0)
    assert [t.trigger for t in triggers] == ["Walk"]
    assert state_machine.hold_time == 0.0

    # Play needs a full hold again after the walk
    assert state_machine.update(OPEN, 0.1, 2.1) == []
    assert state_machine.update(OPEN, 0.1, 2.2) == []
    assert state_machine.update(OPEN, 0.1, 2.3) == []
    triggers = state_machine.update(OPEN, 0.1, 2.4)
    assert [t.trigger for t in triggers] == ["Play"]
    assert triggers[0].cancel == ("Walk",)


@pytest.mark.parametrize("gesture", [PEACE, FIST])
def test_walk_is_immediate(state_machine, gesture):
    triggers = state_machine.update(gesture, 0.016, 1.0)

    assert [t.trigger for t in triggers] == ["Walk"]
    assert triggers[0].cancel == ()
    assert state_machine.state == InteractionState.WALK
    assert state_machine.hold_time == 0.0


def test_walk_not_retriggered(state_machine):
    triggers = hold(state_machine, PEACE, 0.5)
    triggers += hold(state_machine, FIST, 0.5, now=2.0)
    assert [t.trigger for t in triggers] == ["Walk"]


def test_hand_lost_while_walking_clears_animation(state_machine):
    state_machine.update(PEACE, 0.016, 1.0)

    triggers = state_machine.update(NO_HAND, 0.016, 1.1)

    assert triggers == []
    assert state_machine.current_animation == ""
    assert state_machine.state == InteractionState.NONE


def test_walk_then_play(state_machine):
    hold(state_machine, PEACE, 0.1)
    triggers = hold(state_machine, OPEN, 0.5, now=2.0)
    assert [t.trigger for t in triggers] == ["Play"]


def test_idle_switch_after_interval():
    sm = InteractionStateMachine(rng=random.Random(42), start_time=0.0)
    expected = random.Random(42).choice(IDLE_ANIMATIONS)

    assert sm.update(NO_HAND, 0.016, 119.9) == []
    triggers = sm.update(UNKNOWN, 0.016, 120.0)

    assert [t.trigger for t in triggers] == [expected]
    assert sm.current_animation == expected
    assert sm.idle_switch_time == 120.0
    assert sm.update(NO_HAND, 0.016, 125.0) == []


def test_idle_switch_does_not_fire_with_active_gesture(state_machine):
    hold(state_machine, OPEN, 0.5, now=200.0)
    assert state_machine.idle_switch_time == 0.0


def test_idle_variant_named_sleep_counts_as_sleep():
    timings = InteractionTimings(idle_animations=("Sleep",))
    sm = InteractionStateMachine(timings=timings, rng=random.Random(0), start_time=0.0)

    sm.update(NO_HAND, 0.016, 130.0)

    assert sm.state == InteractionState.SLEEP
    # Already sleeping, pointing does not retrigger
    assert hold(sm, POINT, 1.0, now=131.0) == []


def test_state_for_animation():
    assert state_for_animation("") == InteractionState.NONE
    assert state_for_animation("Walk") == InteractionState.WALK
    assert state_for_animation("Idle_b") == InteractionState.IDLE


def test_callback_receives_triggers_and_errors_are_contained(state_machine):
    received = []
    state_machine.set_callbacks(on_trigger=received.append)
    state_machine.update(PEACE, 0.016, 1.0)
    assert [t.trigger for t in received] == ["Walk"]

    def broken(trigger):
        raise RuntimeError("animator gone")

    state_machine.set_callbacks(on_trigger=broken)
    triggers = hold(state_machine, OPEN, 0.5, now=2.0)
    assert [t.trigger for t in triggers] == ["Play"]


def test_reset(state_machine):
    state_machine.update(PEACE, 0.016, 1.0)
    state_machine.reset(now=50.0)

    assert state_machine.current_animation == "Idle"
    assert state_machine.last_gesture == NO_HAND
    assert state_machine.idle_switch_time == 50.0


def test_empty_idle_animations_rejected():
    with pytest.raises(ValueError):
        InteractionStateMachine(timings=InteractionTimings(idle_animations=()))
