import pytest
from rep_pipeline.config import PipelineConfig
from .helpers import StubClassifier


@pytest.fixture
def stub_classifier():
    return StubClassifier()


@pytest.fixture
def small_config():
    # Window of 20 samples, classify every 5 ticks once full
    return PipelineConfig(window_size=20, classify_interval=5)
