from ARCatHandController.detection_gate import DetectionGate


def test_first_attempt_submits():
    gate = DetectionGate(0.08)
    assert gate.try_acquire(0.0)
    assert gate.in_flight
    assert gate.submitted == 1


def test_attempt_inside_interval_skipped():
    gate = DetectionGate(0.08)
    gate.try_acquire(0.0)
    gate.release()

    assert not gate.try_acquire(0.05)
    assert gate.skipped_interval == 1
    # Skipped attempts do not push the interval back
    assert gate.try_acquire(0.08)


def test_attempt_while_busy_skipped():
    gate = DetectionGate(0.08)
    gate.try_acquire(0.0)

    assert not gate.try_acquire(0.1)
    assert gate.skipped_busy == 1

    gate.release()
    assert not gate.try_acquire(0.15)
    assert gate.try_acquire(0.2)


def test_reset():
    gate = DetectionGate(0.08)
    gate.try_acquire(0.0)
    gate.reset()
    assert not gate.in_flight
    assert gate.try_acquire(0.01)
