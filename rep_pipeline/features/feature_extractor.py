"""
Window feature extraction: mean and standard deviation per channel.
"""
import logging
from typing import Tuple
import numpy as np
from ..core.interfaces import N_CHANNELS, N_FEATURES
from ..core.window_buffer import WindowBuffer

logger = logging.getLogger("FeatureExtractor")


def mean(values: np.ndarray) -> float:
    """Arithmetic mean, 0.0 for an empty array."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def std(values: np.ndarray) -> float:
    """Sample standard deviation (Bessel's correction), 0.0 for fewer than two values."""
    if len(values) <= 1:
        return 0.0
    return float(np.std(values, ddof=1))


def channel_stats(values: np.ndarray) -> Tuple[float, float]:
    return mean(values), std(values)


class FeatureExtractor:
    def extract(self, window: WindowBuffer) -> np.ndarray:
        """
        Extract the classifier feature vector from a window.

        Args:
            window: Window of paired samples

        Returns:
            Array of 24 features, (mean, std) per channel in channel order.
            All zeros while the window is still filling.
        """
        if not window.is_full():
            logger.debug(f"Window not full ({len(window)}/{window.capacity}), returning zero features")
            return np.zeros(N_FEATURES)

        return self.extract_from_array(window.as_array())

    def extract_from_array(self, samples: np.ndarray) -> np.ndarray:
        """Compute features from an (n_samples, 12) array."""
        features = np.zeros(N_FEATURES)
        for channel in range(N_CHANNELS):
            features[2 * channel], features[2 * channel + 1] = channel_stats(samples[:, channel])
        return features

    @staticmethod
    def channel_means(features: np.ndarray) -> Tuple[float, ...]:
        """Pick the per-channel means out of a feature vector."""
        return tuple(float(v) for v in features[0::2])
