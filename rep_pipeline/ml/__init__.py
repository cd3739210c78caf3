from .classifier import FunctionClassifier, SklearnClassifier

__all__ = ['FunctionClassifier', 'SklearnClassifier']
