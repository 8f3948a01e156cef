import numpy as np
import pytest
from desaturate.luminance import luminance, to_grayscale


def make_buffer(pixels):
    return np.array(pixels, dtype=np.uint8).reshape(-1)


class TestLuminance:
    def test_truncates_weighted_sum(self):
        # 60 + 59 + 5.5 = 124.5
        assert luminance(200, 100, 50) == 124

    @pytest.mark.parametrize(
        "rgb, expected",
        [
            ((255, 0, 0), 76),
            ((0, 255, 0), 150),
            ((0, 0, 255), 28),
            ((0, 0, 0), 0),
            ((255, 255, 255), 255),
        ],
    )
    def test_primaries(self, rgb, expected):
        assert luminance(*rgb) == expected

    def test_works_on_arrays(self):
        red = np.array([200, 255, 0], dtype=np.uint32)
        green = np.array([100, 0, 255], dtype=np.uint32)
        blue = np.array([50, 0, 0], dtype=np.uint32)
        assert luminance(red, green, blue).tolist() == [124, 76, 150]

    def test_gray_is_unchanged(self):
        for value in range(256):
            assert luminance(value, value, value) == value


class TestToGrayscale:
    def test_converts_pixel_and_keeps_alpha(self):
        data = make_buffer([(200, 100, 50, 77)])
        to_grayscale(data, 1, 1)
        assert data.tolist() == [124, 124, 124, 77]

    def test_mutates_in_place(self):
        data = make_buffer([(255, 0, 0, 255), (0, 0, 255, 10)])
        result = to_grayscale(data, 2, 1)
        assert result is None
        assert data.tolist() == [76, 76, 76, 255, 28, 28, 28, 10]

    def test_row_major_layout(self):
        # 2 wide, 2 high; the pixel at (x=1, y=1) sits at index 12.
        pixels = [(0, 0, 0, 255)] * 4
        pixels[3] = (0, 255, 0, 128)
        data = make_buffer(pixels)
        to_grayscale(data, 2, 2)
        assert data[12:16].tolist() == [150, 150, 150, 128]
        assert data[:12].tolist() == [0, 0, 0, 255] * 3

    def test_pixels_are_independent(self):
        pixels = [(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)]
        data = make_buffer(pixels)
        to_grayscale(data, 3, 1)
        for i, pixel in enumerate(pixels):
            single = make_buffer([pixel])
            to_grayscale(single, 1, 1)
            assert data[i * 4:i * 4 + 4].tolist() == single.tolist()

    def test_second_pass_is_a_fixed_point(self):
        rng = np.random.default_rng(4471)
        data = rng.integers(0, 256, size=16 * 9 * 4, dtype=np.uint8)
        to_grayscale(data, 16, 9)
        once = data.copy()
        to_grayscale(data, 16, 9)
        assert np.array_equal(data, once)

    def test_empty_buffer(self):
        data = np.zeros(0, dtype=np.uint8)
        to_grayscale(data, 0, 0)
        assert data.size == 0

    def test_rejects_wrong_length(self):
        data = np.zeros(7, dtype=np.uint8)
        with pytest.raises(ValueError, match="expected 8"):
            to_grayscale(data, 2, 1)
