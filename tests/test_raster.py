"""
Collector Scan - Raster Tests
Tests for the RGBA buffer and rectangle clamping
"""
import pytest
import numpy as np

from errors import GeometryNotFound
from raster import RasterImage, Rect


class TestRect:
    """Tests for Rect.clamp"""

    def test_clamp_inside_is_unchanged(self):
        """A rectangle fully inside the image is returned as is"""
        assert Rect(10, 20, 30, 40).clamp(100, 100) == Rect(10, 20, 30, 40)

    def test_clamp_overhanging_edges(self):
        """Parts outside the image are cut away"""
        assert Rect(-5, 90, 20, 50).clamp(100, 100) == Rect(0, 90, 15, 10)

    def test_clamp_outside_is_none(self):
        """A rectangle that misses the image clamps to nothing"""
        assert Rect(120, 0, 10, 10).clamp(100, 100) is None
        assert Rect(0, 0, 0, 10).clamp(100, 100) is None

    def test_clamped_rect_stays_within_bounds(self):
        """Every clamped rectangle has positive size and lies inside the image"""
        rng = np.random.default_rng(7)
        for _ in range(200):
            x, y = rng.integers(-50, 150, size=2)
            w, h = rng.integers(-10, 120, size=2)
            clamped = Rect(int(x), int(y), int(w), int(h)).clamp(100, 80)
            if clamped is None:
                continue
            assert clamped.width > 0 and clamped.height > 0
            assert clamped.x >= 0 and clamped.y >= 0
            assert clamped.x + clamped.width <= 100
            assert clamped.y + clamped.height <= 80


class TestRasterImage:
    """Tests for RasterImage construction and transforms"""

    def test_from_gray_array(self):
        """Gray input is expanded to RGBA with opaque alpha"""
        image = RasterImage.from_array(np.full((4, 6), 90, dtype=np.uint8))

        assert image.size == (6, 4)
        assert image.pixels.shape == (4, 6, 4)
        assert (image.pixels[:, :, 3] == 255).all()
        assert (image.pixels[:, :, 0] == 90).all()

    def test_from_float_array_is_clipped(self):
        """Out of range values are clipped into uint8"""
        image = RasterImage.from_array(np.array([[-20.0, 300.0]]))
        assert image.pixels[0, 0, 0] == 0
        assert image.pixels[0, 1, 0] == 255

    def test_unsupported_shape(self):
        """Arrays that are not gray, RGB or RGBA are rejected"""
        with pytest.raises(ValueError):
            RasterImage.from_array(np.zeros((3, 3, 2), dtype=np.uint8))

    def test_pixels_are_read_only(self):
        """The buffer cannot be modified in place"""
        image = RasterImage.from_array(np.zeros((2, 2, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1

    def test_source_array_is_copied(self):
        """Mutating the source array does not change the image"""
        source = np.zeros((2, 2, 4), dtype=np.uint8)
        image = RasterImage(source)
        source[:] = 255
        assert image.pixels.max() == 0

    def test_luma_weights(self):
        """Luma uses the BT.601 weights"""
        red = np.zeros((1, 1, 3), dtype=np.uint8)
        red[0, 0, 0] = 255
        assert RasterImage.from_array(red).luma()[0, 0] == pytest.approx(0.299 * 255)

    def test_crop(self):
        """Crop returns a new image with the requested region"""
        array = np.arange(5 * 4 * 3, dtype=np.uint8).reshape(5, 4, 3)
        image = RasterImage.from_array(array)

        cropped = image.crop(Rect(1, 2, 2, 3))

        assert cropped.size == (2, 3)
        assert np.array_equal(cropped.pixels[:, :, :3], array[2:5, 1:3])

    def test_crop_empty_raises(self):
        """A crop that clamps to nothing raises GeometryNotFound with the stage"""
        image = RasterImage.from_array(np.zeros((5, 5), dtype=np.uint8))
        with pytest.raises(GeometryNotFound) as exc_info:
            image.crop(Rect(10, 10, 5, 5), stage='text_area')
        assert exc_info.value.stage == 'text_area'
        assert 'card not clearly detected' in str(exc_info.value)

    def test_pil_round_trip(self):
        """PIL export keeps size and mode"""
        image = RasterImage.from_array(np.zeros((3, 7, 3), dtype=np.uint8))
        pil_image = image.to_pil()
        assert pil_image.size == (7, 3)
        assert pil_image.mode == 'RGBA'
        assert RasterImage.from_pil(pil_image) == image

    def test_to_bgr_swaps_channels(self):
        """BGR export is ready for cv2.imwrite"""
        rgb = np.zeros((1, 1, 3), dtype=np.uint8)
        rgb[0, 0] = (10, 20, 30)
        bgr = RasterImage.from_array(rgb).to_bgr()
        assert bgr.shape == (1, 1, 3)
        assert tuple(bgr[0, 0]) == (30, 20, 10)

    def test_from_missing_file(self, tmp_path):
        """Unreadable files raise ValueError"""
        with pytest.raises(ValueError, match='Could not load image'):
            RasterImage.from_file(tmp_path / 'missing.png')
