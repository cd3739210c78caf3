"""
rep_pipeline - exercise classification and rep counting from phone and
ear-worn IMU streams.
"""

__version__ = "0.1"

from .config import PipelineConfig, ThresholdConfig, load_config
from .core.interfaces import EngineSnapshot, Exercise, PairedSample, RepState, Sample
from .engine import ClassificationEngine

__all__ = [
    'ClassificationEngine',
    'EngineSnapshot',
    'Exercise',
    'PairedSample',
    'PipelineConfig',
    'RepState',
    'Sample',
    'ThresholdConfig',
    'load_config',
]
