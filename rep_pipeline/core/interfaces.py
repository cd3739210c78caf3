"""
Core interfaces and data classes for the rep pipeline.
"""
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from enum import Enum
from typing import Mapping, Optional, Sequence, Tuple
import numpy as np

Vector3 = Tuple[float, float, float]

# Channel order of a paired sample; the classifier was trained on this order
CHANNEL_NAMES = (
    'p_ax', 'p_ay', 'p_az', 'p_gx', 'p_gy', 'p_gz',
    'a_ax', 'a_ay', 'a_az', 'a_gx', 'a_gy', 'a_gz',
)
FEATURE_NAMES = tuple(
    f"{channel}_{stat}" for channel in CHANNEL_NAMES for stat in ('mean', 'std')
)
N_CHANNELS = len(CHANNEL_NAMES)
N_FEATURES = len(FEATURE_NAMES)

NO_OBSERVATION = "unknown"


class RepPipelineError(Exception):
    """Base class for all rep pipeline errors."""


class ConfigError(RepPipelineError):
    """Invalid pipeline configuration."""


class ClassifierLoadError(RepPipelineError):
    """The inference backend could not be loaded."""


class ClassificationError(RepPipelineError):
    """A single classification call failed."""


class SessionFormatError(RepPipelineError):
    """A recorded session file is malformed."""


class Exercise(str, Enum):
    """Exercises that have a rep counter."""
    SQUAT = "squat"
    PUSHUP = "pushup"
    JUMPING_JACK = "jumping_jack"

    @classmethod
    def from_label(cls, label: str) -> Optional['Exercise']:
        """Map a classifier label to an exercise, None for rest/unknown labels."""
        try:
            return cls(label)
        except ValueError:
            return None


class RepState(str, Enum):
    """States of the rep counting state machines."""
    IDLE = "idle"
    GOING_DOWN = "going_down"
    GOING_UP = "going_up"
    # Edge counting policy
    REST = "rest"
    ACTIVE = "active"


@dataclass(frozen=True)
class Sample:
    """One 6-axis reading from a single sensor."""
    accel: Vector3 = (0.0, 0.0, 0.0)
    gyro: Vector3 = (0.0, 0.0, 0.0)

    def as_row(self) -> Tuple[float, ...]:
        return (*self.accel, *self.gyro)


ZERO_SAMPLE = Sample()


@dataclass(frozen=True)
class PairedSample:
    """Phone sample plus the companion value held at the time it arrived."""
    phone: Sample
    companion: Sample = ZERO_SAMPLE

    def as_row(self) -> Tuple[float, ...]:
        return self.phone.as_row() + self.companion.as_row()


@dataclass(frozen=True)
class EngineSnapshot:
    """Observable engine state, published once per classification tick."""
    label: str = NO_OBSERVATION
    counts: Mapping[Exercise, int] = field(default_factory=dict)
    states: Mapping[Exercise, RepState] = field(default_factory=dict)
    channel_means: Tuple[float, ...] = (0.0,) * N_CHANNELS
    tick: int = 0

    def channel_mean(self, channel: str) -> float:
        """Live mean of a named channel, e.g. 'p_gx'."""
        return self.channel_means[CHANNEL_NAMES.index(channel)]


class Classifier(ABC):
    """Maps a feature vector to an exercise label."""
    @abstractmethod
    def classify(self, features: np.ndarray) -> str:
        """Classify a 24-element feature vector."""
        pass


class RepCountingPolicy(ABC):
    """Abstract base class for a single exercise's rep counter."""
    def __init__(self, exercise: Exercise):
        self.exercise = exercise
        self.count = 0

    @property
    @abstractmethod
    def initial_state(self) -> RepState:
        pass

    @abstractmethod
    def update(self, label: str, features: Sequence[float], now: float) -> int:
        """
        Consume one classification result.

        Returns:
            Number of reps counted on this tick (0 or 1)
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial state with a zero count."""
        pass
