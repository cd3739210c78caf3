"""
Rep counting policies.
"""
from typing import Dict
from ..config import PipelineConfig
from ..core.interfaces import Exercise, RepCountingPolicy
from .edge_counter import EdgeRepCounter
from .min_max_tracker import MinMaxTracker
from .threshold_counter import ThresholdRepCounter


def build_counters(config: PipelineConfig) -> Dict[Exercise, RepCountingPolicy]:
    """One independent counter per exercise, using the configured policy."""
    if config.policy == 'edge':
        return {exercise: EdgeRepCounter(exercise) for exercise in Exercise}
    return {
        exercise: ThresholdRepCounter(
            exercise,
            config.thresholds[exercise],
            debounce_interval=config.debounce_interval
        )
        for exercise in Exercise
    }


__all__ = [
    'build_counters',
    'EdgeRepCounter',
    'MinMaxTracker',
    'ThresholdRepCounter',
]
