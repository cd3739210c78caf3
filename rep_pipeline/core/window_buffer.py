"""
Fixed-capacity sliding window over paired sensor samples.
"""
from collections import deque
from typing import Tuple
import numpy as np
from .interfaces import PairedSample, N_CHANNELS


class WindowBuffer:
    def __init__(self, capacity: int = 75):
        """
        Initialize the window.

        Args:
            capacity: Number of paired samples kept; oldest are evicted first
        """
        self.capacity = capacity
        self._samples = deque(maxlen=capacity)

    def push(self, sample: PairedSample) -> None:
        self._samples.append(sample)

    def is_full(self) -> bool:
        return len(self._samples) == self.capacity

    def contents(self) -> Tuple[PairedSample, ...]:
        """Samples in arrival order, oldest first."""
        return tuple(self._samples)

    def as_array(self) -> np.ndarray:
        """Window as an (n_samples, 12) array in channel order."""
        if not self._samples:
            return np.zeros((0, N_CHANNELS))
        return np.array([s.as_row() for s in self._samples], dtype=float)

    def clear(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)
