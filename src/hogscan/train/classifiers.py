"""
Classifier factory and the window classifier used by the scanner.
"""
from sklearn.svm import SVC, LinearSVC
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from typing import Dict, Any, Optional
import numpy as np

from hogscan.constants import DESCRIPTOR_LENGTH
from hogscan.errors import InvalidArgumentError


def _first(value):
    # Config values may be lists of candidates; the first one is used
    return value[0] if isinstance(value, list) else value


def create_classifier(classifier_type: str, config: Dict[str, Any],
                      class_weight: Optional[str] = "balanced") -> object:
    """
    Create classifier instance.

    Args:
        classifier_type: Type of classifier ('svm', 'linear_svm', 'logistic_regression')
        config: Configuration dictionary
        class_weight: Class weight strategy ('balanced', None, or custom)

    Returns:
        Unfitted scikit-learn estimator
    """
    classifier_config = (config.get('training', {}) or {}).get(classifier_type, {}) or {}

    if classifier_type == 'svm':
        return SVC(
            kernel=classifier_config.get('kernel', 'rbf'),
            C=_first(classifier_config.get('C', 1.0)),
            gamma=_first(classifier_config.get('gamma', 'scale')),
            class_weight=class_weight,
            random_state=42
        )

    elif classifier_type == 'linear_svm':
        return LinearSVC(
            C=_first(classifier_config.get('C', 0.01)),
            max_iter=classifier_config.get('max_iter', 10000),
            class_weight=class_weight,
            random_state=42
        )

    elif classifier_type == 'logistic_regression':
        return LogisticRegression(
            C=_first(classifier_config.get('C', 1.0)),
            max_iter=classifier_config.get('max_iter', 1000),
            solver=classifier_config.get('solver', 'lbfgs'),
            class_weight=class_weight,
            random_state=42
        )

    else:
        raise ValueError(f"Unknown classifier type: {classifier_type}")


class DescriptorClassifier:
    """
    Binary window classifier over HOG descriptors.

    Wraps a StandardScaler followed by a scikit-learn estimator. Positive
    windows are labelled 1 and negative windows 0.
    """

    def __init__(self, estimator: Optional[object] = None,
                 feature_dim: int = DESCRIPTOR_LENGTH):
        """
        Initialize classifier.

        Args:
            estimator: Unfitted estimator (default: linear SVM)
            feature_dim: Expected descriptor length
        """
        if estimator is None:
            estimator = create_classifier('linear_svm', {})
        self.feature_dim = feature_dim
        self.pipeline = Pipeline([
            ('scaler', StandardScaler()),
            ('classifier', estimator),
        ])
        self.is_trained = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DescriptorClassifier":
        """Build from the 'training' section of a config dictionary."""
        classifier_type = (config.get('training', {}) or {}).get('classifier', 'linear_svm')
        return cls(create_classifier(classifier_type, config))

    def _check_vectors(self, vectors: np.ndarray) -> np.ndarray:
        vectors = np.asarray(vectors, dtype=np.float32)
        if vectors.ndim == 1:
            vectors = vectors.reshape(1, -1)
        if vectors.ndim != 2 or vectors.shape[1] != self.feature_dim:
            raise InvalidArgumentError(
                f"Expected descriptors of length {self.feature_dim}, got shape {vectors.shape}"
            )
        return vectors

    def train(self, positive_vectors: np.ndarray,
              negative_vectors: np.ndarray) -> "DescriptorClassifier":
        """
        Fit on positive and negative descriptors.

        Args:
            positive_vectors: Descriptors of windows containing the object, (P, dim)
            negative_vectors: Descriptors of background windows, (N, dim)

        Returns:
            self
        """
        positives = self._check_vectors(positive_vectors)
        negatives = self._check_vectors(negative_vectors)
        if len(positives) == 0 or len(negatives) == 0:
            raise ValueError(
                f"Training needs both classes, got {len(positives)} positive "
                f"and {len(negatives)} negative vectors"
            )

        X = np.concatenate([positives, negatives])
        y = np.concatenate([
            np.ones(len(positives), dtype=np.int32),
            np.zeros(len(negatives), dtype=np.int32),
        ])
        self.pipeline.fit(X, y)
        self.is_trained = True
        return self

    def predict_batch(self, vectors: np.ndarray) -> np.ndarray:
        """Boolean match per descriptor row."""
        if not self.is_trained:
            raise RuntimeError("Classifier has not been trained")
        vectors = self._check_vectors(vectors)
        if len(vectors) == 0:
            return np.zeros(0, dtype=bool)
        return self.pipeline.predict(vectors) == 1

    def predict(self, vector: np.ndarray) -> bool:
        """True if the descriptor is classified as the object."""
        return bool(self.predict_batch(vector)[0])
