"""
Backpressure policy for detector submissions.

Frames are rate limited to a minimum interval and at most one detection may
be in flight. Skipped frames are dropped, never queued.
"""

from typing import Optional

from .config import DETECT_INTERVAL_SEC


class DetectionGate:
    """
    Decides whether a new frame may be sent to the detector.

    Only the thread that owns the controller calls into the gate, so no
    locking is needed.
    """

    def __init__(self, detect_interval: float = DETECT_INTERVAL_SEC):
        self.detect_interval = detect_interval

        self._last_attempt_time: Optional[float] = None
        self._in_flight = False

        # Statistics
        self.submitted = 0
        self.skipped_interval = 0
        self.skipped_busy = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def try_acquire(self, now: float) -> bool:
        """
        Try to start a detection at time ``now``.

        An attempt inside the interval is skipped without restarting the
        interval; an attempt while busy restarts it.

        Returns:
            True if the caller should submit the frame.
        """
        if self._last_attempt_time is not None and now - self._last_attempt_time < self.detect_interval:
            self.skipped_interval += 1
            return False
        self._last_attempt_time = now

        if self._in_flight:
            self.skipped_busy += 1
            return False

        self._in_flight = True
        self.submitted += 1
        return True

    def release(self) -> None:
        """Mark the in-flight detection as finished."""
        self._in_flight = False

    def reset(self) -> None:
        self._last_attempt_time = None
        self._in_flight = False
