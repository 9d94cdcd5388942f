"""
rppg/buffer.py — Fixed-capacity moving-window signal buffer
============================================================
A bounded FIFO of scalar samples with a running average.  Used by the
continuous estimator for its smoothing windows and by the batch estimator
as the ~30-second raw-signal window.

Once the buffer is full, every `push()` evicts the oldest sample, so the
buffer always holds the `capacity` most recent values in arrival order.
Owned by a single scan loop, so no locking.
"""

from collections import deque

import numpy as np


class SignalBuffer:
    """
    Moving window of the most recent `capacity` samples.

    Parameters
    ----------
    capacity : int   Maximum number of samples retained (must be >= 1).
    """

    def __init__(self, capacity: int):
        if not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"SignalBuffer capacity must be a positive int, got {capacity!r}.")
        self._data: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._data.maxlen  # type: ignore[return-value]

    def push(self, value: float) -> None:
        """Append one sample, evicting the oldest when at capacity."""
        self._data.append(float(value))

    def average(self) -> float:
        """Arithmetic mean of the current contents, 0.0 when empty."""
        if not self._data:
            return 0.0
        return sum(self._data) / len(self._data)

    def to_array(self) -> np.ndarray:
        return np.fromiter(self._data, dtype=np.float64, count=len(self._data))

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self):
        return iter(self._data)

    def __repr__(self) -> str:
        return f"SignalBuffer(capacity={self.capacity}, size={len(self)})"
