import numpy as np
import pytest

from hogscan.errors import InvalidArgumentError
from hogscan.feature_extraction.cell_histogram import CellHistogramBuilder
from hogscan.feature_extraction.gradient_extractor import GradientExtractor
from hogscan.parallel.dispatcher import WorkDispatcher


def constant_field(angle, height=128, width=64, channels=3):
    magnitude = np.ones((height, width, channels), dtype=np.float32)
    orientation = np.full((height, width, channels), angle, dtype=np.float32)
    return magnitude, orientation


@pytest.fixture
def builder():
    return CellHistogramBuilder()


class TestHistogram:
    def test_weight_conservation(self, builder, window_buffer):
        field = GradientExtractor().compute(window_buffer)
        for cell in (0, 9, 63, 127):
            top, left = builder.cell_bounds(cell, (0, 0))
            expected = field.magnitude[top:top + 8, left:left + 8, :].sum(dtype=np.float64)
            hist = builder.histogram(cell, (0, 0), field.magnitude, field.orientation)
            np.testing.assert_allclose(hist.sum(), expected, rtol=1e-5)

    def test_split_between_neighbours(self, builder):
        magnitude, orientation = constant_field(30.0)
        hist = builder.histogram(5, (0, 0), magnitude, orientation)
        # 8 * 8 * 3 samples, half of each vote to bins 1 and 2
        np.testing.assert_allclose(hist, [0, 96, 96, 0, 0, 0, 0, 0, 0])

    def test_last_bin_wraps_to_first(self, builder):
        magnitude, orientation = constant_field(170.0)
        hist = builder.histogram(0, (0, 0), magnitude, orientation)
        np.testing.assert_allclose(hist, [96, 0, 0, 0, 0, 0, 0, 0, 96])

    def test_bin_centre_edge(self, builder):
        magnitude, orientation = constant_field(0.0)
        hist = builder.histogram(0, (0, 0), magnitude, orientation)
        np.testing.assert_allclose(hist, [192, 0, 0, 0, 0, 0, 0, 0, 0])

    def test_window_offset(self, builder, rng):
        magnitude = rng.random((140, 80, 3)).astype(np.float32)
        orientation = (rng.random((140, 80, 3)) * 179.9).astype(np.float32)
        shifted = builder.histogram(0, (5, 10), magnitude, orientation)
        direct = builder.histogram(
            0, (0, 0),
            np.ascontiguousarray(magnitude[5:, 10:]),
            np.ascontiguousarray(orientation[5:, 10:]),
        )
        np.testing.assert_allclose(shifted, direct)

    def test_invalid_cell_index(self, builder):
        magnitude, orientation = constant_field(0.0)
        with pytest.raises(InvalidArgumentError):
            builder.histogram(128, (0, 0), magnitude, orientation)

    def test_cell_outside_arrays(self, builder):
        magnitude, orientation = constant_field(0.0)
        with pytest.raises(InvalidArgumentError):
            builder.histogram(127, (1, 0), magnitude, orientation)


class TestHistograms:
    def test_default_bin_width(self, builder):
        assert builder.nbins == 9
        assert builder.bin_width == 20.0

    def test_shape(self, builder):
        magnitude, orientation = constant_field(45.0)
        assert builder.histograms((0, 0), magnitude, orientation).shape == (128, 9)

    def test_parallel_matches_sequential(self, builder, window_buffer):
        field = GradientExtractor().compute(window_buffer)
        np.testing.assert_array_equal(
            builder.histograms((0, 0), field.magnitude, field.orientation,
                               dispatcher=WorkDispatcher(4)),
            builder.histograms((0, 0), field.magnitude, field.orientation),
        )
