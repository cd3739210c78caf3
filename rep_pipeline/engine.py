"""
Classification engine: window -> features -> classifier -> rep counters.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from types import MappingProxyType
from typing import Callable, Dict, List, Optional, Tuple
import numpy as np
from .config import PipelineConfig
from .core.interfaces import (
    Classifier, EngineSnapshot, Exercise, N_CHANNELS, NO_OBSERVATION, PairedSample, RepCountingPolicy,
    RepPipelineError, RepState, Sample, ZERO_SAMPLE
)
from .core.window_buffer import WindowBuffer
from .counting import build_counters
from .features.feature_extractor import FeatureExtractor
from .ml.classifier import SklearnClassifier

logger = logging.getLogger("ClassificationEngine")

Observer = Callable[[EngineSnapshot], None]

# Distinct unrecognized labels remembered for warn-once logging
MAX_TRACKED_LABELS = 32


class ClassificationEngine:
    def __init__(
        self,
        classifier: Optional[Classifier],
        config: Optional[PipelineConfig] = None,
        async_inference: bool = False,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the engine.

        Args:
            classifier: Inference backend; None runs without classification
            config: Window, stride, debounce and threshold settings
            async_inference: Run the classifier on a background worker
            clock: Time source used when ingest() gets no timestamp
        """
        self.config = config or PipelineConfig()
        self.classifier = classifier
        self.clock = clock

        self.window = WindowBuffer(self.config.window_size)
        self.extractor = FeatureExtractor()
        self.counters: Dict[Exercise, RepCountingPolicy] = build_counters(self.config)

        self._lock = threading.RLock()
        self._tick = 0
        self._generation = 0
        self._stopped = False
        self._observers: List[Observer] = []
        self._unknown_labels = set()
        self._snapshot = self._build_snapshot(NO_OBSERVATION, (0.0,) * N_CHANNELS)

        self._executor = None
        if async_inference:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="classifier")

        if classifier is None:
            logger.warning("No classifier available, running without classification")

    @classmethod
    def from_model_path(
        cls,
        model_path: str,
        encoder_path: Optional[str] = None,
        config: Optional[PipelineConfig] = None,
        **kwargs
    ) -> 'ClassificationEngine':
        """Build an engine around a joblib-persisted model. Raises ClassifierLoadError."""
        classifier = SklearnClassifier.load(model_path, encoder_path)
        return cls(classifier, config=config, **kwargs)

    @property
    def classification_available(self) -> bool:
        return self.classifier is not None

    @property
    def tick(self) -> int:
        return self._tick

    def ingest(
        self,
        phone: Sample,
        companion: Optional[Sample] = None,
        timestamp: Optional[float] = None
    ) -> Optional[EngineSnapshot]:
        """
        Ingest one phone-paced tick.

        Args:
            phone: Phone sample for this tick
            companion: Last known companion sample (zero when never seen)
            timestamp: Tick time in seconds, defaults to the engine clock

        Returns:
            The snapshot published on this tick, or None when nothing was
            published synchronously
        """
        with self._lock:
            if self._stopped:
                raise RepPipelineError("Engine is stopped")

            now = self.clock() if timestamp is None else timestamp
            self.window.push(PairedSample(phone, companion or ZERO_SAMPLE))
            self._tick += 1

            if not self.window.is_full():
                if self._tick % self.config.classify_interval == 0:
                    logger.debug(f"Buffering... {len(self.window)}/{self.window.capacity}")
                return None
            # Stride counts from the tick that filled the window
            since_full = self._tick - self.window.capacity
            if since_full == 0 or since_full % self.config.classify_interval != 0:
                return None
            if self.classifier is None:
                return None

            features = self.extractor.extract(self.window)

            if self._executor is not None:
                future = self._executor.submit(self._classify_and_apply, features, now, self._generation)
                future.add_done_callback(self._log_worker_failure)
                return None

            label = self._classify(features)
            if label is None:
                return None
            return self._apply(label, features, now)

    def _classify(self, features: np.ndarray) -> Optional[str]:
        try:
            return self.classifier.classify(features)
        except Exception as e:
            logger.warning(f"Classification failed on tick {self._tick}, skipping: {e}")
            return None

    def _classify_and_apply(self, features: np.ndarray, now: float, generation: int) -> None:
        label = self._classify(features)
        if label is None:
            return
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding classification result from before reset")
                return
            self._apply(label, features, now)

    def _log_worker_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Background classification failed: {error!r}", exc_info=error)

    def _apply(self, label: str, features: np.ndarray, now: float) -> EngineSnapshot:
        # Caller holds the lock
        self._check_label(label)
        logger.debug(f"Prediction: {label}")

        for counter in self.counters.values():
            counter.update(label, features, now)

        self._publish(self._build_snapshot(label, self.extractor.channel_means(features)))
        return self._snapshot

    def _check_label(self, label: str) -> None:
        if Exercise.from_label(label) is not None or label == self.config.rest_label:
            return
        if label in self._unknown_labels:
            return
        if len(self._unknown_labels) >= MAX_TRACKED_LABELS:
            logger.debug(f"Classifier returned unknown label {label!r}, treating it as rest")
            return
        self._unknown_labels.add(label)
        logger.warning(f"Classifier returned unknown label {label!r}, treating it as rest")

    def _build_snapshot(self, label: str, channel_means: Tuple[float, ...]) -> EngineSnapshot:
        return EngineSnapshot(
            label=label,
            counts=MappingProxyType({e: c.count for e, c in self.counters.items()}),
            states=MappingProxyType({e: c.state for e, c in self.counters.items()}),
            channel_means=channel_means,
            tick=self._tick
        )

    def _publish(self, snapshot: EngineSnapshot) -> None:
        self._snapshot = snapshot
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception as e:
                logger.error(f"Observer {observer!r} failed: {e}")

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a snapshot observer. Returns a function that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe():
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def snapshot(self) -> EngineSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def label(self) -> str:
        return self.snapshot().label

    def count(self, exercise: Exercise) -> int:
        with self._lock:
            return self.counters[exercise].count

    def state(self, exercise: Exercise) -> RepState:
        with self._lock:
            return self.counters[exercise].state

    def diagnostics(self) -> Dict[Exercise, Dict[str, Tuple[float, float]]]:
        """Observed channel-mean ranges per exercise (threshold policy only)."""
        with self._lock:
            return {
                exercise: counter.tracker.ranges()
                for exercise, counter in self.counters.items()
                if hasattr(counter, 'tracker')
            }

    def reset(self) -> None:
        """Clear window, tick counter and all rep counters."""
        with self._lock:
            self.window.clear()
            self._tick = 0
            self._generation += 1
            for counter in self.counters.values():
                counter.reset()
            self._publish(self._build_snapshot(NO_OBSERVATION, (0.0,) * N_CHANNELS))
        logger.info("Classifier reset. Rep counts zeroed.")

    def flush(self) -> None:
        """Block until every submitted classification has been applied or discarded."""
        if self._executor is not None:
            self._executor.submit(lambda: None).result()

    def stop(self) -> None:
        """Stop accepting ticks and drop any in-flight classification."""
        with self._lock:
            self._stopped = True
            self._generation += 1
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
