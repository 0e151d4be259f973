import numpy as np
import pytest

from hogscan.errors import UnsupportedSizeError
from hogscan.feature_extraction.hog_extractor import HOGExtractor
from hogscan.feature_extraction.pixel_buffer import PixelBuffer


@pytest.fixture
def extractor():
    return HOGExtractor(workers=2)


class TestHOGExtractor:
    def test_descriptor_shape(self, extractor, window_buffer):
        descriptor = extractor.extract(window_buffer)
        assert descriptor.shape == (3780,)
        assert descriptor.dtype == np.float32
        assert extractor.get_feature_dim() == 3780

    def test_descriptor_normalized(self, extractor, window_buffer):
        descriptor = extractor.extract(window_buffer)
        assert descriptor.min() >= 0.0
        np.testing.assert_allclose(np.linalg.norm(descriptor), 1.0, atol=1e-4)

    @pytest.mark.parametrize("shape", [(128, 65, 3), (127, 64, 3), (64, 128, 3)])
    def test_wrong_size(self, extractor, shape):
        with pytest.raises(UnsupportedSizeError):
            extractor.extract(np.zeros(shape, dtype=np.float32))

    def test_wrong_size_is_value_error(self, extractor):
        with pytest.raises(ValueError):
            extractor.extract(np.zeros((10, 10, 3), dtype=np.float32))

    def test_uint8_input(self, extractor, rng):
        image = rng.integers(0, 256, (128, 64, 3), dtype=np.uint8)
        np.testing.assert_array_equal(
            extractor.extract(image),
            extractor.extract(PixelBuffer.from_uint8(image)),
        )

    def test_four_channels(self, extractor, rng):
        descriptor = extractor.extract(rng.random((128, 64, 4), dtype=np.float32))
        assert descriptor.shape == (3780,)

    def test_flat_image(self, extractor):
        descriptor = extractor.extract(np.full((128, 64, 3), 0.5, dtype=np.float32))
        assert np.all(descriptor == 0)

    @pytest.mark.parametrize("parallel,parallel_children",
                             [(True, False), (False, True), (True, True)])
    def test_parallel_matches_sequential(self, extractor, window_buffer,
                                         parallel, parallel_children):
        np.testing.assert_array_equal(
            extractor.extract(window_buffer, parallel=parallel,
                              parallel_children=parallel_children),
            extractor.extract(window_buffer),
        )

    def test_repeatable(self, extractor, window_buffer):
        np.testing.assert_array_equal(extractor.extract(window_buffer),
                                      extractor.extract(window_buffer))

    def test_calculate_window_matches_extract(self, extractor, window_buffer):
        field = extractor.gradients.compute(window_buffer)
        np.testing.assert_array_equal(extractor.calculate_window(field),
                                      extractor.extract(window_buffer))

    def test_from_config(self):
        extractor = HOGExtractor.from_config({'hog': {'tau': 0.3, 'epsilon': 1e-4}})
        assert extractor.assembler.tau == 0.3
        assert extractor.blocks.epsilon == 1e-4
        assert HOGExtractor.from_config({}).tau == 0.2
