"""
Utility functions for model training.
"""
from pathlib import Path
import pickle

from hogscan.preprocess.utils import ensure_dir

MODEL_FILENAME = "model.pkl"


def save_model(classifier, output_path: Path) -> Path:
    """
    Pickle a trained classifier into a model directory.

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    ensure_dir(output_path)

    model_file = output_path / MODEL_FILENAME
    with open(model_file, 'wb') as f:
        pickle.dump(classifier, f)
    return model_file


def load_model(model_path: Path):
    """Load a classifier saved by save_model."""
    model_file = Path(model_path) / MODEL_FILENAME
    if not model_file.exists():
        raise FileNotFoundError(f"Model file not found: {model_file}")

    with open(model_file, 'rb') as f:
        return pickle.load(f)
