import logging
import threading
import numpy as np
import pytest
from rep_pipeline.config import PipelineConfig
from rep_pipeline.core.interfaces import (
    ClassificationError, ClassifierLoadError, Exercise, NO_OBSERVATION, RepPipelineError,
    RepState, Sample
)
from rep_pipeline.engine import MAX_TRACKED_LABELS, ClassificationEngine
from rep_pipeline.ml.classifier import FunctionClassifier
from .helpers import StubClassifier, make_sample

# One-sample window classified on every tick after the first, so the
# trigger (phone gyro x mean) equals the phone gyro x of the latest sample
PER_TICK = PipelineConfig(window_size=1, classify_interval=1)


def gyro_x(value):
    return Sample(accel=(0.0, 0.0, 0.0), gyro=(value, 0.0, 0.0))


def drive(engine, values, start=0.0, step=0.2):
    """Warm-up tick, then one classified tick per value."""
    engine.ingest(gyro_x(0.0), timestamp=start)
    t = start
    for value in values:
        t += step
        engine.ingest(gyro_x(value), timestamp=t)
    return t


def test_no_classification_while_buffering(stub_classifier, small_config):
    engine = ClassificationEngine(stub_classifier, config=small_config)
    for _ in range(19):
        engine.ingest(make_sample())
    assert stub_classifier.calls == []


def test_first_classification_comes_k_ticks_after_window_fills(stub_classifier, small_config):
    engine = ClassificationEngine(stub_classifier, config=small_config)
    for _ in range(20):
        engine.ingest(make_sample())
    assert stub_classifier.calls == []

    for _ in range(4):
        engine.ingest(make_sample())
    assert stub_classifier.calls == []

    snapshot = engine.ingest(make_sample())
    assert len(stub_classifier.calls) == 1
    assert snapshot is not None
    assert snapshot.label == "rest"


def test_default_window_and_stride(stub_classifier):
    engine = ClassificationEngine(stub_classifier)
    for _ in range(75 + 9):
        engine.ingest(make_sample())
    assert stub_classifier.calls == []
    engine.ingest(make_sample())
    assert len(stub_classifier.calls) == 1


def test_classifier_receives_window_features(small_config):
    classifier = StubClassifier()
    engine = ClassificationEngine(classifier, config=small_config)
    for _ in range(25):
        engine.ingest(make_sample(0.5))

    features = classifier.calls[0]
    assert features.shape == (24,)
    np.testing.assert_allclose(features[0::2], 0.5)
    np.testing.assert_allclose(features[1::2], 0.0, atol=1e-12)


def test_squat_end_to_end():
    engine = ClassificationEngine(StubClassifier(["squat"]), config=PER_TICK)
    engine.ingest(gyro_x(0.0), timestamp=10.0)
    engine.ingest(gyro_x(-0.9), timestamp=10.0)
    engine.ingest(gyro_x(0.9), timestamp=10.02)
    engine.ingest(gyro_x(-0.9), timestamp=10.05)
    assert engine.count(Exercise.SQUAT) == 0

    snapshot = engine.ingest(gyro_x(-0.9), timestamp=10.2)
    assert engine.count(Exercise.SQUAT) == 1
    assert engine.state(Exercise.SQUAT) == RepState.GOING_DOWN
    assert snapshot.counts[Exercise.SQUAT] == 1
    assert snapshot.label == "squat"
    assert snapshot.channel_mean('p_gx') == pytest.approx(-0.9)


def test_squat_cycle_leaves_other_exercises_untouched():
    engine = ClassificationEngine(StubClassifier(["squat"]), config=PER_TICK)
    drive(engine, [-0.9, 0.9, -0.9, 0.9, -0.9])

    assert engine.count(Exercise.SQUAT) == 2
    assert engine.count(Exercise.PUSHUP) == 0
    assert engine.count(Exercise.JUMPING_JACK) == 0
    assert engine.state(Exercise.PUSHUP) == RepState.IDLE
    assert engine.state(Exercise.JUMPING_JACK) == RepState.IDLE


def test_classification_failure_skips_only_that_tick():
    classifier = StubClassifier(["squat", "squat", ClassificationError("boom"), "squat"])
    engine = ClassificationEngine(classifier, config=PER_TICK)

    drive(engine, [-0.9, 0.9])
    before = engine.snapshot()
    assert engine.state(Exercise.SQUAT) == RepState.GOING_UP

    assert engine.ingest(gyro_x(-0.9), timestamp=1.0) is None
    assert engine.snapshot() is before
    assert engine.count(Exercise.SQUAT) == 0
    assert engine.state(Exercise.SQUAT) == RepState.GOING_UP

    engine.ingest(gyro_x(-0.9), timestamp=1.2)
    assert engine.count(Exercise.SQUAT) == 1


def test_any_backend_exception_is_contained():
    def broken(features):
        raise ValueError("bad input")

    engine = ClassificationEngine(FunctionClassifier(broken), config=PER_TICK)
    drive(engine, [0.0, 0.0])
    assert engine.label == NO_OBSERVATION


def test_counts_never_decrease_and_reset_zeroes_all():
    labels = ["squat"] * 3 + ["pushup"] * 3 + ["jumping_jack"] * 3
    engine = ClassificationEngine(StubClassifier(labels), config=PER_TICK)

    seen = []
    engine.subscribe(lambda snapshot: seen.append(dict(snapshot.counts)))
    drive(engine, [-0.9, 0.9, -0.9, 0.2, -0.2, 0.2, 0.2, -0.2, 0.2])

    for exercise in Exercise:
        assert engine.count(exercise) == 1
        history = [counts[exercise] for counts in seen]
        assert history == sorted(history)

    engine.reset()
    for exercise in Exercise:
        assert engine.count(exercise) == 0
        assert engine.state(exercise) == RepState.IDLE
    assert engine.label == NO_OBSERVATION
    assert engine.tick == 0
    assert len(engine.window) == 0
    assert engine.diagnostics()[Exercise.SQUAT] == {}
    assert seen[-1] == {exercise: 0 for exercise in Exercise}


def test_edge_policy_is_selectable():
    config = PipelineConfig(window_size=1, classify_interval=1, policy='edge')
    engine = ClassificationEngine(StubClassifier(["squat", "squat", "rest"]), config=config)
    drive(engine, [0.0, 0.0, 0.0])
    assert engine.count(Exercise.SQUAT) == 1
    assert engine.state(Exercise.SQUAT) == RepState.REST
    assert engine.diagnostics() == {}

    engine.reset()
    assert engine.state(Exercise.SQUAT) == RepState.REST


def test_snapshot_is_read_only():
    engine = ClassificationEngine(StubClassifier(["squat"]), config=PER_TICK)
    drive(engine, [0.0])
    snapshot = engine.snapshot()
    with pytest.raises(TypeError):
        snapshot.counts[Exercise.SQUAT] = 5


def test_unsubscribe_stops_notifications():
    engine = ClassificationEngine(StubClassifier(), config=PER_TICK)
    seen = []
    unsubscribe = engine.subscribe(seen.append)
    drive(engine, [0.0])
    unsubscribe()
    drive(engine, [0.0], start=1.0)
    assert len(seen) == 1


def test_runs_without_classifier():
    engine = ClassificationEngine(None, config=PER_TICK)
    assert not engine.classification_available
    drive(engine, [0.0, 0.0])
    assert engine.label == NO_OBSERVATION
    assert engine.tick == 3


def test_from_model_path_reports_load_failure(tmp_path):
    with pytest.raises(ClassifierLoadError):
        ClassificationEngine.from_model_path(str(tmp_path / "missing.joblib"))


def test_ingest_after_stop_is_rejected():
    engine = ClassificationEngine(StubClassifier(), config=PER_TICK)
    engine.stop()
    with pytest.raises(RepPipelineError):
        engine.ingest(make_sample())


def test_async_results_are_applied_in_order():
    labels = ["squat", "pushup", "rest", "jumping_jack"]
    engine = ClassificationEngine(StubClassifier(labels), config=PER_TICK, async_inference=True)
    seen = []
    engine.subscribe(lambda snapshot: seen.append(snapshot.label))

    with engine:
        drive(engine, [0.0] * 4)
        engine.flush()
        assert seen == labels


def test_async_result_from_before_reset_is_discarded():
    release = threading.Event()
    entered = threading.Event()

    def slow(features):
        entered.set()
        release.wait(timeout=5)
        return "squat"

    engine = ClassificationEngine(FunctionClassifier(slow), config=PER_TICK, async_inference=True)
    with engine:
        drive(engine, [-0.9])
        assert entered.wait(timeout=5)
        engine.reset()
        release.set()
        engine.flush()

        assert engine.label == NO_OBSERVATION
        assert engine.state(Exercise.SQUAT) == RepState.IDLE


def test_async_worker_failure_is_logged(caplog):
    engine = ClassificationEngine(StubClassifier(["squat"]), config=PER_TICK, async_inference=True)

    def explode(label, features, now):
        raise RuntimeError("counter exploded")

    engine.counters[Exercise.SQUAT].update = explode

    with engine:
        with caplog.at_level(logging.ERROR, logger="ClassificationEngine"):
            drive(engine, [0.0])
            engine.flush()

    assert "counter exploded" in caplog.text


def test_unknown_label_tracking_is_bounded(caplog):
    labels = [f"mystery_{i}" for i in range(MAX_TRACKED_LABELS + 10)]
    engine = ClassificationEngine(StubClassifier(labels), config=PER_TICK)

    with caplog.at_level(logging.WARNING, logger="ClassificationEngine"):
        drive(engine, [0.0] * len(labels))

    warnings = [r for r in caplog.records if "unknown label" in r.getMessage()]
    assert len(warnings) == MAX_TRACKED_LABELS
    assert engine.label == labels[-1]
    assert engine.count(Exercise.SQUAT) == 0
