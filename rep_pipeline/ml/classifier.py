"""
Inference backends for exercise classification.
"""
import logging
from pathlib import Path
from typing import Any, Callable, Optional
import joblib
import numpy as np
import pandas as pd
from ..core.interfaces import (
    Classifier, ClassificationError, ClassifierLoadError, FEATURE_NAMES, N_FEATURES
)

logger = logging.getLogger("Classifier")


class SklearnClassifier(Classifier):
    def __init__(self, model: Any, label_encoder: Any = None):
        """
        Wrap a fitted scikit-learn estimator.

        Args:
            model: Estimator exposing predict()
            label_encoder: Optional LabelEncoder used to decode integer predictions
        """
        self.model = model
        self.label_encoder = label_encoder

    def classify(self, features: np.ndarray) -> str:
        features = np.asarray(features, dtype=float)
        if features.shape != (N_FEATURES,):
            raise ClassificationError(f"Expected {N_FEATURES} features, got shape {features.shape}")

        X = pd.DataFrame([features], columns=list(FEATURE_NAMES))
        try:
            prediction = self.model.predict(X)[0]
            if self.label_encoder is not None:
                prediction = self.label_encoder.inverse_transform([prediction])[0]
        except Exception as e:
            raise ClassificationError(f"Prediction failed: {e}") from e

        return str(prediction)

    @classmethod
    def load(cls, model_path: str, encoder_path: Optional[str] = None) -> 'SklearnClassifier':
        """Load a joblib-persisted model (and optional label encoder)."""
        try:
            model = joblib.load(Path(model_path))
            label_encoder = joblib.load(Path(encoder_path)) if encoder_path else None
        except Exception as e:
            logger.error(f"Failed to load classifier from {model_path}: {e}")
            raise ClassifierLoadError(f"Failed to load classifier from {model_path}: {e}") from e

        if not hasattr(model, 'predict'):
            raise ClassifierLoadError(f"{model_path} does not contain an estimator with predict()")

        logger.info(f"Loaded classifier {type(model).__name__} from {model_path}")
        return cls(model, label_encoder)


class FunctionClassifier(Classifier):
    """Adapts a plain callable to the Classifier interface."""
    def __init__(self, fn: Callable[[np.ndarray], str]):
        self.fn = fn

    def classify(self, features: np.ndarray) -> str:
        return self.fn(features)
