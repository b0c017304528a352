import numpy as np
import pytest

from thermocam.color import Color
from thermocam.error import DimensionMismatch
from thermocam.image import ImageBuffer, build_image, draw_marker, marker_position, resize_nearest, upscale
from thermocam.stats import TemperaturePixel

GREEN = Color(0, 255, 0)


@pytest.fixture
def checker() -> ImageBuffer:
    """A 4x3 image with distinct pixel values."""
    data = np.arange(4 * 3 * 3, dtype=np.uint8).reshape(3, 4, 3)
    return ImageBuffer(4, 3, data)


class TestImageBuffer:
    def test_from_bytes(self):
        image = ImageBuffer.from_bytes(2, 1, bytes([1, 2, 3, 4, 5, 6]))
        assert image.pixel(0, 0) == Color(1, 2, 3)
        assert image.pixel(1, 0) == Color(4, 5, 6)
        assert image.tobytes() == bytes([1, 2, 3, 4, 5, 6])

    @pytest.mark.parametrize("length", [0, 5, 7, 18])
    def test_from_bytes_mismatch(self, length):
        with pytest.raises(DimensionMismatch) as exc_info:
            ImageBuffer.from_bytes(2, 1, bytes(length))
        assert exc_info.value.expected == 6
        assert exc_info.value.actual == length

    def test_shape_checked(self):
        with pytest.raises(DimensionMismatch):
            ImageBuffer(3, 3, np.zeros((2, 3, 3), dtype=np.uint8))
        with pytest.raises(TypeError):
            ImageBuffer(1, 1, np.zeros((1, 1, 3), dtype=np.float32))

    def test_pil_round_trip(self, checker):
        image = ImageBuffer.from_pil(checker.to_pil())
        assert image.shape == checker.shape
        assert np.array_equal(image.data, checker.data)

    def test_from_pil_is_writeable(self, checker):
        image = ImageBuffer.from_pil(checker.to_pil())
        assert image.data.flags.writeable
        image.data[0, 0] = 255
        assert checker.pixel(0, 0) == Color(0, 1, 2)

    def test_from_array_copies(self):
        source = np.zeros((2, 2, 3), dtype=np.uint8)
        source.flags.writeable = False
        image = ImageBuffer.from_array(source)
        assert image.data.flags.writeable
        assert image.data.flags.c_contiguous
        image.data[...] = 7
        assert not source.any()


class TestBuildImage:
    def test_scan_order(self):
        colors = [Color(1, 0, 0), Color(2, 0, 0), Color(3, 0, 0), Color(4, 0, 0), Color(5, 0, 0), Color(6, 0, 0)]
        image = build_image(colors, 3, 2)
        assert (image.width, image.height) == (3, 2)
        assert image.pixel(2, 0) == Color(3, 0, 0)
        assert image.pixel(0, 1) == Color(4, 0, 0)

    def test_from_array(self):
        colors = np.full((6, 3), 9, dtype=np.uint8)
        image = build_image(colors, 2, 3)
        assert image.shape == (3, 2)
        assert image.tobytes() == bytes([9] * 18)

    @pytest.mark.parametrize("count", [0, 5, 7])
    def test_count_mismatch(self, count):
        with pytest.raises(DimensionMismatch):
            build_image([Color(0, 0, 0)] * count, 3, 2)


class TestUpscale:
    def test_size(self, checker):
        image = upscale(checker, 6)
        assert (image.width, image.height) == (24, 18)

    def test_uniform_image_stays_uniform(self):
        image = ImageBuffer(3, 2, np.full((2, 3, 3), 77, dtype=np.uint8))
        assert np.all(upscale(image, 4).data == 77)

    def test_factor_one_copies(self, checker):
        image = upscale(checker, 1)
        assert np.array_equal(image.data, checker.data)
        assert image.data is not checker.data

    @pytest.mark.parametrize("factor", [0, -2, 2.0])
    def test_invalid_factor(self, checker, factor):
        with pytest.raises(ValueError):
            upscale(checker, factor)

    def test_resize_nearest(self, checker):
        image = resize_nearest(checker, 8, 6)
        assert image.pixel(0, 0) == checker.pixel(0, 0)
        assert image.pixel(7, 5) == checker.pixel(3, 2)


class TestDrawMarker:
    def test_plus_shape(self):
        image = ImageBuffer.blank(9, 9)
        draw_marker(4, 4, GREEN, image)
        mask = np.all(image.data == GREEN.to_array(), axis=-1)
        expected = np.zeros((9, 9), dtype=bool)
        expected[4, 2:7] = True
        expected[2:7, 4] = True
        assert np.array_equal(mask, expected)
        assert mask.sum() == 9

    @pytest.mark.parametrize(
        ("x", "y"),
        [(0, 0), (4, 0), (0, 2), (4, 2), (3, 1), (5, 5), (-1, 1), (6, 3), (-3, -3)],
    )
    def test_never_out_of_bounds(self, x, y):
        # a 5x3 image padded by 3 pixels to catch stray writes
        padded = np.zeros((9, 11, 3), dtype=np.uint8)
        view = padded[3:6, 3:8]
        image = ImageBuffer(5, 3, view)
        draw_marker(x, y, GREEN, image)

        outside = padded.copy()
        outside[3:6, 3:8] = 0
        assert not outside.any()

        written = np.all(view == GREEN.to_array(), axis=-1).sum()
        expected = sum(
            1
            for px, py in [(x + k, y) for k in range(-2, 3)] + [(x, y + k) for k in (-2, -1, 1, 2)]
            if 0 <= px < 5 and 0 <= py < 3
        )
        assert written == expected

    def test_far_edge(self):
        image = ImageBuffer.blank(4, 4)
        draw_marker(3, 3, GREEN, image)
        mask = np.all(image.data == GREEN.to_array(), axis=-1)
        assert mask[3, 1:4].all()
        assert mask[1:4, 3].all()
        assert mask.sum() == 5

    def test_marker_on_upscaled_image(self):
        image = upscale(ImageBuffer.blank(4, 4), 6)
        assert image.data.flags.writeable
        draw_marker(5, 5, GREEN, image)
        assert image.pixel(5, 5) == GREEN
        assert image.pixel(7, 5) == GREEN
        assert image.pixel(5, 3) == GREEN

    def test_marker_position(self):
        assert marker_position(TemperaturePixel(2, 1, 0.0), 6) == (15, 9)
        assert marker_position(TemperaturePixel(0, 0, 0.0), 1) == (0, 0)
