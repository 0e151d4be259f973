import numpy as np
import pytest

from hogscan.detection.main import run_detection
from hogscan.detection.scanner import PyramidScanner
from hogscan.feature_extraction.main import extract_features_for_split
from hogscan.feature_extraction.hog_extractor import HOGExtractor
from hogscan.feature_extraction.utils import (
    check_cache_exists, load_cached_features, save_features_batch,
)
from hogscan.preprocess.utils import collect_image_paths, load_config, load_image
from hogscan.train.dataset import negative_vectors, positive_vectors
from hogscan.train.main import train_model


@pytest.fixture
def positive_dir(tmp_path, image_writer):
    for i in range(3):
        image_writer(tmp_path / "positive" / f"person_{i}.png", 128, 64)
    image_writer(tmp_path / "positive" / "wrong_size.png", 50, 50)
    return tmp_path / "positive"


@pytest.fixture
def negative_dir(tmp_path, image_writer):
    image_writer(tmp_path / "negative" / "scene_0.png", 200, 100)
    image_writer(tmp_path / "negative" / "nested" / "scene_1.png", 150, 90)
    image_writer(tmp_path / "negative" / "tiny.png", 20, 20)
    return tmp_path / "negative"


class TestImageLoading:
    def test_collect_sorted_recursive(self, negative_dir):
        paths = collect_image_paths(negative_dir)
        assert [p.name for p in paths] == ["scene_1.png", "scene_0.png", "tiny.png"]

    def test_missing_directory(self, tmp_path):
        assert collect_image_paths(tmp_path / "missing") == []

    def test_grayscale_becomes_three_channels(self, tmp_path, image_writer):
        path = image_writer(tmp_path / "gray.png", 128, 64, channels=1)
        buffer = load_image(path)
        assert buffer.shape == (128, 64, 3)

    def test_alpha_is_kept(self, tmp_path, image_writer):
        path = image_writer(tmp_path / "alpha.png", 130, 70, channels=4)
        assert load_image(path).channels == 4

    def test_unreadable_file(self, tmp_path, capsys):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        assert load_image(path) is None
        assert "Warning" in capsys.readouterr().out

    def test_load_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("scan:\n  step_size: 8\n")
        assert load_config(path) == {'scan': {'step_size': 8}}


class TestFeatureCache:
    def test_round_trip(self, tmp_path, rng):
        features = rng.random((4, 3780))
        labels = np.array([1, 1, 0, 0])
        save_features_batch(features, labels, tmp_path, "train")

        assert check_cache_exists(tmp_path, "train")
        loaded_features, loaded_labels = load_cached_features(tmp_path, "train")
        assert loaded_features.dtype == np.float32
        np.testing.assert_array_equal(loaded_labels, labels)

    def test_missing_cache(self, tmp_path):
        assert not check_cache_exists(tmp_path, "train")
        with pytest.raises(FileNotFoundError):
            load_cached_features(tmp_path, "train")

    def test_extract_split_skips_wrong_size(self, positive_dir, tmp_path, capsys):
        features, labels, stats = extract_features_for_split(
            positive_dir, tmp_path / "features", "positive", HOGExtractor(workers=2)
        )
        assert features.shape == (3, 3780)
        assert labels.tolist() == [1, 1, 1]
        assert stats['skipped'] == 1
        assert "wrong_size.png" in capsys.readouterr().out

        _, _, cached = extract_features_for_split(
            positive_dir, tmp_path / "features", "positive", HOGExtractor(workers=2)
        )
        assert cached['cached'] is True


class TestTrainingVectors:
    def test_positive_vectors(self, positive_dir):
        vectors = positive_vectors(collect_image_paths(positive_dir), verbose=False)
        assert vectors.shape == (3, 3780)

    def test_negative_vectors_seeded(self, negative_dir):
        paths = collect_image_paths(negative_dir)
        scanner = PyramidScanner(workers=2)
        first = negative_vectors(paths, scanner, samples_per_image=4,
                                 rng=np.random.default_rng(7), verbose=False)
        second = negative_vectors(paths, scanner, samples_per_image=4,
                                  rng=np.random.default_rng(7), verbose=False)
        assert first.shape == (8, 3780)
        np.testing.assert_array_equal(first, second)

    def test_no_usable_images(self, tmp_path):
        assert negative_vectors([], verbose=False).shape == (0, 3780)


class TestEndToEnd:
    def test_train_then_detect(self, positive_dir, negative_dir, tmp_path):
        config = {
            'scan': {'step_size': 16, 'workers': 2},
            'training': {'negative_samples': 5, 'seed': 3},
        }
        classifier = train_model(config, positive_dir, negative_dir, tmp_path / "models")
        assert classifier.is_trained

        detections = run_detection(config, negative_dir / "scene_0.png", tmp_path / "models",
                                   parallel=True)
        for detection in detections:
            x, y, w, h = detection.rectangle
            assert x + w <= 100 and y + h <= 200

    def test_train_from_extracted_cache(self, positive_dir, tmp_path, image_writer, capsys):
        for i in range(3):
            image_writer(tmp_path / "background_windows" / f"bg_{i}.png", 128, 64)
        features_dir = tmp_path / "features"
        extractor = HOGExtractor(workers=2)
        extract_features_for_split(positive_dir, features_dir, "positive", extractor, label=1)
        extract_features_for_split(tmp_path / "background_windows", features_dir, "negative",
                                   extractor, label=0)
        cached_positives, _ = load_cached_features(features_dir, "positive")

        config = {'scan': {'workers': 2}}
        classifier = train_model(config, tmp_path / "no_positive", tmp_path / "no_negative",
                                 tmp_path / "models", features_dir=features_dir)

        assert "Loaded cached positive features" in capsys.readouterr().out
        assert classifier.is_trained
        assert classifier.predict_batch(cached_positives).shape == (3,)

    def test_cache_ignored_when_disabled(self, tmp_path, rng):
        features_dir = tmp_path / "features"
        save_features_batch(rng.random((2, 3780)), np.ones(2), features_dir, "positive")
        save_features_batch(rng.random((2, 3780)), np.zeros(2), features_dir, "negative")

        with pytest.raises(ValueError):
            train_model({}, tmp_path / "no_positive", tmp_path / "no_negative",
                        tmp_path / "models", features_dir=features_dir, use_cache=False)

    def test_detect_missing_image(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            run_detection({}, tmp_path / "missing.png", tmp_path)
