"""
Collector Scan - Text Line Locator Tests
Tests for the per-row signals, peak detection and consensus fusion
"""
import pytest
import numpy as np

from raster import RasterImage
from text_line_locator import TextBounds, TextLineLocator


def _strip(width, height, bright_rows=(), value=255):
    """Black strip with full-width bright rows"""
    array = np.zeros((height, width), dtype=np.uint8)
    for y in bright_rows:
        array[y, :] = value
    return RasterImage.from_array(array)


class TestLocate:
    """End to end behaviour of TextLineLocator.locate"""

    def test_single_line_consensus(self):
        """A bright line on the border is found by all three signals"""
        bounds = TextLineLocator().locate(_strip(160, 200, bright_rows=[120]))
        assert bounds == TextBounds(start_y=120, height=16, used_fallback=False)

    def test_tie_prefers_smaller_y(self):
        """Two equally supported lines: the upper one wins"""
        bounds = TextLineLocator().locate(_strip(160, 200, bright_rows=[64, 120]))
        assert bounds.start_y == 64
        assert bounds.used_fallback is False

    def test_span_is_clipped_to_strip(self):
        """A line close to the bottom yields a shorter span"""
        bounds = TextLineLocator().locate(_strip(160, 200, bright_rows=[190]))
        assert bounds == TextBounds(start_y=190, height=10, used_fallback=False)
        assert bounds.end_y == 200

    def test_fallback_without_peaks(self):
        """A featureless strip falls back to its bottom 15%"""
        image = RasterImage.from_array(np.full((200, 100), 90, dtype=np.uint8))
        assert TextLineLocator().locate(image) == TextBounds(start_y=170, height=30, used_fallback=True)

    def test_fallback_when_span_is_empty(self):
        """A strip too short for a span uses the fallback"""
        bounds = TextLineLocator().locate(_strip(40, 10, bright_rows=[5]))
        assert bounds == TextBounds(start_y=9, height=1, used_fallback=True)

    def test_deterministic(self):
        """Repeated runs on equal input give equal bounds"""
        rng = np.random.default_rng(5)
        image = RasterImage.from_array(rng.integers(0, 256, size=(120, 90), dtype=np.uint8))
        locator = TextLineLocator()
        assert locator.locate(image) == locator.locate(image.copy())


class TestSignals:
    """Tests for the three row profiles"""

    def test_brightness_profile_runs_bottom_up(self):
        image = _strip(50, 10, bright_rows=[2])
        profile = TextLineLocator().brightness_profile(image.luma())

        assert [y for y, _ in profile] == list(range(9, -1, -1))
        assert dict(profile)[2] == pytest.approx(255.0)

    def test_brightness_profile_samples_left_part(self):
        """Only the left 80% of the columns count"""
        array = np.zeros((3, 10), dtype=np.uint8)
        array[:, 8:] = 255
        profile = TextLineLocator().brightness_profile(RasterImage.from_array(array).luma())
        assert all(value == 0 for _, value in profile)

    def test_edge_density_profile(self):
        """Rows next to a bright line are dense with edges, the line itself is not"""
        image = _strip(60, 30, bright_rows=[15])
        profile = dict(TextLineLocator().edge_density_profile(image.luma()))

        assert sorted(profile) == list(range(1, 29))
        assert profile[14] == pytest.approx(1.0)
        assert profile[16] == pytest.approx(1.0)
        assert profile[15] == pytest.approx(0.0)
        assert profile[5] == 0.0

    def test_edge_density_profile_tiny_image(self):
        assert TextLineLocator().edge_density_profile(np.zeros((2, 10))) == []

    def test_text_pattern_profile_rows(self):
        """Rows of blocks start at height - 8 and step up by 8"""
        profile = TextLineLocator().text_pattern_profile(np.zeros((30, 40)))
        assert [y for y, _ in profile] == [22, 14, 6]
        assert all(score == 0.0 for _, score in profile)

    def test_text_pattern_profile_without_blocks(self):
        """A strip no wider than one block scores zero"""
        profile = TextLineLocator().text_pattern_profile(np.zeros((16, 8)))
        assert profile == [(8, 0.0), (0, 0.0)]

    def test_local_variance_matches_brute_force(self):
        """Neighbourhoods at the border only use pixels inside the image"""
        rng = np.random.default_rng(9)
        gray = rng.uniform(0, 255, size=(6, 7))
        variance = TextLineLocator._local_variance(gray)

        for y in range(6):
            for x in range(7):
                window = gray[max(0, y - 1):y + 2, max(0, x - 1):x + 2]
                assert variance[y, x] == pytest.approx(np.var(window), rel=1e-6, abs=1e-6)


class TestPeaksAndFusion:
    """Tests for peak selection and consensus scoring"""

    def test_brightness_peaks(self):
        locator = TextLineLocator()
        assert locator.find_brightness_peaks([(5, 0.0), (4, 50.0), (3, 0.0)]) == [4]
        assert locator.find_brightness_peaks([(5, 0.0), (4, 25.0), (3, 0.0)]) == []
        assert locator.find_brightness_peaks([(5, 40.0), (4, 50.0), (3, 0.0)]) == []

    def test_edge_density_peaks_need_strict_maximum(self):
        locator = TextLineLocator()
        assert locator.find_edge_density_peaks([(1, 0.0), (2, 0.5), (3, 0.0)]) == [2]
        assert locator.find_edge_density_peaks([(1, 0.0), (2, 0.5), (3, 0.5), (4, 0.0)]) == []
        assert locator.find_edge_density_peaks([(1, 0.0), (2, 0.05), (3, 0.0)]) == []

    def test_text_pattern_peaks(self):
        assert TextLineLocator().find_text_pattern_peaks([(8, 0.5), (0, 0.25)]) == [8]

    def test_combine_evidence(self):
        """Agreement from nearby edge and text peaks raises the score"""
        best = TextLineLocator().combine_evidence([50, 120], [125], [118])
        assert best == (120, 3)

    def test_tolerance_is_inclusive(self):
        locator = TextLineLocator()
        assert locator.rank_candidates([100], [120], []) == [(100, 2)]
        assert locator.rank_candidates([100], [121], []) == [(100, 1)]

    def test_ranking_order(self):
        """Higher score first, then smaller y"""
        ranked = TextLineLocator().rank_candidates([90, 30, 60], [62], [])
        assert ranked == [(60, 2), (30, 1), (90, 1)]

    def test_no_brightness_peaks(self):
        assert TextLineLocator().combine_evidence([], [10], [10]) is None

    def test_custom_tolerance(self):
        assert TextLineLocator(tolerance=5).rank_candidates([100], [110], []) == [(100, 1)]
