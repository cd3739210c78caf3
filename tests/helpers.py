import numpy as np
from rep_pipeline.core.interfaces import Classifier, Sample


class StubClassifier(Classifier):
    """Returns queued labels in order, then repeats the last one."""
    def __init__(self, labels=("rest",)):
        self.labels = list(labels)
        self.calls = []

    def classify(self, features):
        self.calls.append(np.array(features))
        label = self.labels[min(len(self.calls), len(self.labels)) - 1]
        if isinstance(label, Exception):
            raise label
        return label


def features_with(trigger, channel=6):
    features = np.zeros(24)
    features[channel] = trigger
    return features


def make_sample(value=0.0):
    return Sample(accel=(value, value, value), gyro=(value, value, value))
