from rep_pipeline.core.interfaces import Exercise, RepState
from rep_pipeline.counting import EdgeRepCounter
from .helpers import features_with


def test_counts_on_falling_edge():
    counter = EdgeRepCounter(Exercise.SQUAT)
    features = features_with(0.0)

    assert counter.update("squat", features, 0.0) == 0
    assert counter.state == RepState.ACTIVE
    assert counter.update("squat", features, 0.2) == 0
    assert counter.count == 0

    assert counter.update("rest", features, 0.4) == 1
    assert counter.state == RepState.REST
    assert counter.count == 1


def test_other_labels_while_resting_do_nothing():
    counter = EdgeRepCounter(Exercise.PUSHUP)
    for label in ("rest", "squat", "jumping_jack"):
        counter.update(label, features_with(0.0), 0.0)
    assert counter.count == 0
    assert counter.state == RepState.REST


def test_reset():
    counter = EdgeRepCounter(Exercise.JUMPING_JACK)
    counter.update("jumping_jack", features_with(0.0), 0.0)
    counter.update("rest", features_with(0.0), 0.1)
    counter.update("jumping_jack", features_with(0.0), 0.2)

    counter.reset()
    assert counter.count == 0
    assert counter.state == counter.initial_state == RepState.REST
