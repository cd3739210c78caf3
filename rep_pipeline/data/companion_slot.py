"""
Last-known-value slot for the companion (ear-worn) sensor stream.
"""
import threading
from typing import Optional
from ..core.interfaces import Sample, ZERO_SAMPLE


class CompanionSlot:
    """
    Holds the most recent companion sample.

    Written by the companion stream, read by the phone-paced driver; reads never
    wait for new data and fall back to a zero sample before the first update.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Optional[Sample] = None

    def update(self, sample: Sample) -> None:
        with self._lock:
            self._latest = sample

    def latest(self) -> Sample:
        with self._lock:
            return self._latest if self._latest is not None else ZERO_SAMPLE

    @property
    def connected(self) -> bool:
        """True once at least one companion sample has arrived."""
        with self._lock:
            return self._latest is not None

    def clear(self) -> None:
        with self._lock:
            self._latest = None
