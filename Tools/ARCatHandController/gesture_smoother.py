"""
Majority-vote smoothing of per-frame gesture labels.
"""

from collections import Counter, deque

from .config import GESTURE_BUFFER_SIZE
from .gesture_types import GestureType


class GestureSmoother:
    """
    Sliding window low-pass filter over raw gesture labels.

    Keeps the last ``window_size`` labels and reports the most frequent one,
    suppressing single-frame misclassifications. A smaller window reacts
    faster, a larger one is more stable.
    """

    def __init__(self, window_size: int = GESTURE_BUFFER_SIZE):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self._window: deque[GestureType] = deque(maxlen=window_size)

    @property
    def window_size(self) -> int:
        return self._window.maxlen

    def append(self, gesture: GestureType) -> None:
        """Push a raw label, evicting the oldest when the window is full."""
        self._window.append(gesture)

    def current(self) -> GestureType:
        """
        Get the majority label of the window.

        Ties go to the label seen first (oldest first). An empty window
        yields UNKNOWN.
        """
        if not self._window:
            return GestureType.UNKNOWN
        counts = Counter(self._window)
        # Counter keeps first-insertion order and max() keeps the first maximum
        return max(counts, key=counts.__getitem__)

    def counts(self) -> dict[GestureType, int]:
        """Label counts of the current window."""
        return dict(Counter(self._window))

    def snapshot(self) -> list[GestureType]:
        """Window contents, oldest first."""
        return list(self._window)

    def __len__(self) -> int:
        return len(self._window)

