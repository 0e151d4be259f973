import numpy as np
import pytest
from sklearn.svm import SVC, LinearSVC

from hogscan.errors import InvalidArgumentError
from hogscan.train.classifiers import DescriptorClassifier, create_classifier
from hogscan.train.utils import load_model, save_model


@pytest.fixture
def vectors(rng):
    positives = (rng.random((20, 3780)) + 1.0).astype(np.float32)
    negatives = rng.random((20, 3780)).astype(np.float32)
    return positives, negatives


@pytest.fixture
def trained(vectors):
    return DescriptorClassifier().train(*vectors)


class TestCreateClassifier:
    def test_svm_from_config(self):
        classifier = create_classifier('svm', {'training': {'svm': {'C': [10.0], 'gamma': 'auto'}}})
        assert isinstance(classifier, SVC)
        assert classifier.C == 10.0
        assert classifier.gamma == 'auto'

    def test_linear_svm_defaults(self):
        classifier = create_classifier('linear_svm', {})
        assert isinstance(classifier, LinearSVC)

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            create_classifier('random_forest', {})


class TestDescriptorClassifier:
    def test_separates_training_data(self, trained, vectors):
        positives, negatives = vectors
        assert trained.predict_batch(positives).all()
        assert not trained.predict_batch(negatives).any()

    def test_predict_single(self, trained, vectors):
        positives, negatives = vectors
        assert trained.predict(positives[0]) is True
        assert trained.predict(negatives[0]) is False

    def test_empty_batch(self, trained):
        assert trained.predict_batch(np.zeros((0, 3780))).shape == (0,)

    def test_wrong_length(self, trained):
        with pytest.raises(InvalidArgumentError):
            trained.predict(np.zeros(100))

    def test_untrained(self, vectors):
        with pytest.raises(RuntimeError):
            DescriptorClassifier().predict(vectors[0][0])

    def test_needs_both_classes(self, vectors):
        with pytest.raises(ValueError):
            DescriptorClassifier().train(vectors[0], np.zeros((0, 3780)))

    def test_from_config(self):
        classifier = DescriptorClassifier.from_config({'training': {'classifier': 'svm'}})
        assert isinstance(classifier.pipeline.named_steps['classifier'], SVC)


class TestModelPersistence:
    def test_save_and_load(self, trained, vectors, tmp_path):
        model_file = save_model(trained, tmp_path / "models")
        assert model_file.exists()

        loaded = load_model(tmp_path / "models")
        np.testing.assert_array_equal(loaded.predict_batch(vectors[0]),
                                      trained.predict_batch(vectors[0]))

    def test_missing_model(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_model(tmp_path)
