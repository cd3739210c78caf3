"""
Pipeline configuration with calibrated defaults.
"""
import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict
from .core.interfaces import ConfigError, Exercise, N_FEATURES

logger = logging.getLogger("PipelineConfig")

POLICIES = ('threshold', 'edge')


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Threshold state machine tuning for one exercise.

    The down stroke is detected on the side of down_threshold facing away from
    up_threshold: with down < up the trigger has to fall below down_threshold,
    with down > up it has to rise above it.
    """
    trigger_channel: int
    down_threshold: float
    up_threshold: float

    def __post_init__(self):
        if not 0 <= self.trigger_channel < N_FEATURES:
            raise ConfigError(f"trigger_channel must be in [0, {N_FEATURES}), got {self.trigger_channel}")
        if self.down_threshold == self.up_threshold:
            raise ConfigError("down_threshold and up_threshold must differ")

    @property
    def falling_down_stroke(self) -> bool:
        return self.down_threshold < self.up_threshold

    def is_down(self, value: float) -> bool:
        if self.falling_down_stroke:
            return value < self.down_threshold
        return value > self.down_threshold

    def is_up(self, value: float) -> bool:
        if self.falling_down_stroke:
            return value > self.up_threshold
        return value < self.up_threshold


def default_thresholds() -> Dict[Exercise, ThresholdConfig]:
    # Trigger 6 is the phone gyro x mean
    return {
        Exercise.SQUAT: ThresholdConfig(trigger_channel=6, down_threshold=-0.8, up_threshold=0.8),
        Exercise.PUSHUP: ThresholdConfig(trigger_channel=6, down_threshold=0.1, up_threshold=-0.1),
        Exercise.JUMPING_JACK: ThresholdConfig(trigger_channel=6, down_threshold=0.1, up_threshold=-0.1),
    }


@dataclass(frozen=True)
class PipelineConfig:
    window_size: int = 75
    classify_interval: int = 10
    debounce_interval: float = 0.1  # seconds
    policy: str = 'threshold'
    rest_label: str = 'rest'
    thresholds: Dict[Exercise, ThresholdConfig] = field(default_factory=default_thresholds)

    def __post_init__(self):
        if self.window_size < 1:
            raise ConfigError(f"window_size must be positive, got {self.window_size}")
        if self.classify_interval < 1:
            raise ConfigError(f"classify_interval must be positive, got {self.classify_interval}")
        if self.debounce_interval < 0:
            raise ConfigError(f"debounce_interval must not be negative, got {self.debounce_interval}")
        if self.policy not in POLICIES:
            raise ConfigError(f"policy must be one of {POLICIES}, got {self.policy!r}")
        missing = [e.value for e in Exercise if e not in self.thresholds]
        if missing:
            raise ConfigError(f"Missing thresholds for {missing}")

    def with_overrides(self, **overrides) -> 'PipelineConfig':
        """Copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PipelineConfig':
        """
        Build a config from a plain dictionary.

        Expected format (every key optional):
        {
            "window_size": 75,
            "classify_interval": 10,
            "debounce_interval": 0.1,
            "policy": "threshold",
            "thresholds": {
                "squat": {"trigger_channel": 6, "down_threshold": -0.8, "up_threshold": 0.8}
            }
        }
        """
        data = dict(data)
        thresholds = default_thresholds()
        for name, values in data.pop('thresholds', {}).items():
            exercise = Exercise.from_label(name)
            if exercise is None:
                raise ConfigError(f"Unknown exercise in thresholds: {name!r}")
            try:
                thresholds[exercise] = ThresholdConfig(**values)
            except TypeError as e:
                raise ConfigError(f"Invalid thresholds for {name}: {e}") from e

        known = {'window_size', 'classify_interval', 'debounce_interval', 'policy', 'rest_label'}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")

        return cls(thresholds=thresholds, **data)


def load_config(path: str) -> PipelineConfig:
    """Load a pipeline config from a JSON file."""
    config_path = Path(path)
    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read config {config_path}: {e}") from e

    config = PipelineConfig.from_dict(data)
    logger.info(f"Loaded config from {config_path}")
    return config
