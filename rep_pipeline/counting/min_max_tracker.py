"""
Running min/max of channel means, for threshold calibration.
"""
from typing import Dict, Optional, Sequence, Tuple
from ..core.interfaces import CHANNEL_NAMES


class MinMaxTracker:
    def __init__(self):
        self._ranges: Dict[str, Tuple[float, float]] = {}

    def update(self, features: Sequence[float]) -> None:
        """Fold the channel means of a feature vector into the running ranges."""
        for channel, value in zip(CHANNEL_NAMES, features[0::2]):
            value = float(value)
            current = self._ranges.get(channel)
            if current is None:
                self._ranges[channel] = (value, value)
            else:
                self._ranges[channel] = (min(current[0], value), max(current[1], value))

    def range_of(self, channel: str) -> Optional[Tuple[float, float]]:
        return self._ranges.get(channel)

    def ranges(self) -> Dict[str, Tuple[float, float]]:
        return dict(self._ranges)

    def describe(self, features: Sequence[float]) -> str:
        lines = []
        for channel, value in zip(CHANNEL_NAMES, features[0::2]):
            bounds = self._ranges.get(channel)
            if bounds is None:
                lines.append(f"{channel}: {value:.2f} [MIN: N/A, MAX: N/A, RANGE: N/A]")
            else:
                lo, hi = bounds
                lines.append(f"{channel}: {value:.2f} [MIN: {lo:.2f}, MAX: {hi:.2f}, RANGE: {hi - lo:.2f}]")
        return "\n".join(lines)

    def reset(self) -> None:
        self._ranges.clear()
