"""
Collector Scan - Text Line Locator
Finds the vertical span of the identifier line inside the edge-cropped strip.

Three independent per-row signals are computed:
    1. brightness profile - light glyphs on the dark border raise the row mean
    2. edge density      - share of pixels with a strong Sobel gradient
    3. block patterns    - 8x8 blocks with mixed contrast and structured variance

Each brightness peak is a candidate line start; candidates gain a point for
every other signal that peaks nearby. The best-scoring candidate wins.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

import config
from logger import get_logger
from raster import RasterImage

logger = get_logger('text_locator')


@dataclass(frozen=True)
class TextBounds:
    start_y: int
    height: int
    used_fallback: bool = False

    @property
    def end_y(self) -> int:
        return self.start_y + self.height


class TextLineLocator:
    """Consensus text-line finder"""

    def __init__(
        self,
        tolerance: int = config.TEXT_CONSENSUS_TOLERANCE,
        block_size: int = config.TEXT_BLOCK_SIZE,
        brightness_sample_fraction: float = config.TEXT_BRIGHTNESS_SAMPLE_FRACTION,
        brightness_peak_delta: float = config.TEXT_BRIGHTNESS_PEAK_DELTA,
        brightness_peak_floor: float = config.TEXT_BRIGHTNESS_PEAK_FLOOR,
        sobel_threshold: float = config.TEXT_SOBEL_THRESHOLD,
        edge_density_floor: float = config.TEXT_EDGE_DENSITY_FLOOR,
        block_bright_luma: float = config.TEXT_BLOCK_BRIGHT_LUMA,
        block_contrast_range: Tuple[float, float] = config.TEXT_BLOCK_CONTRAST_RANGE,
        block_variance_range: Tuple[float, float] = config.TEXT_BLOCK_VARIANCE_RANGE,
        pattern_floor: float = config.TEXT_PATTERN_FLOOR,
        span_max_pixels: int = config.TEXT_SPAN_MAX_PIXELS,
        span_fraction: float = config.TEXT_SPAN_FRACTION,
        fallback_fraction: float = config.TEXT_FALLBACK_FRACTION
    ):
        self.tolerance = tolerance
        self.block_size = block_size
        self.brightness_sample_fraction = brightness_sample_fraction
        self.brightness_peak_delta = brightness_peak_delta
        self.brightness_peak_floor = brightness_peak_floor
        self.sobel_threshold = sobel_threshold
        self.edge_density_floor = edge_density_floor
        self.block_bright_luma = block_bright_luma
        self.block_contrast_range = block_contrast_range
        self.block_variance_range = block_variance_range
        self.pattern_floor = pattern_floor
        self.span_max_pixels = span_max_pixels
        self.span_fraction = span_fraction
        self.fallback_fraction = fallback_fraction

    def locate(self, image: RasterImage) -> TextBounds:
        """Return the text span, or the bottom-strip fallback when no line is found"""
        gray = image.luma()
        height = image.height

        brightness_peaks = self.find_brightness_peaks(self.brightness_profile(gray))
        edge_peaks = self.find_edge_density_peaks(self.edge_density_profile(gray))
        text_peaks = self.find_text_pattern_peaks(self.text_pattern_profile(gray))

        logger.debug(
            f"Peaks | brightness={brightness_peaks} | edge={edge_peaks} | text={text_peaks}"
        )

        best = self.combine_evidence(brightness_peaks, edge_peaks, text_peaks)
        if best is not None:
            start_y, score = best
            span = min(self.span_max_pixels, int(height * self.span_fraction))
            span = min(span, height - start_y)
            if span >= 1:
                logger.info(f"Text line found | start_y={start_y} | height={span} | score={score}")
                return TextBounds(start_y=start_y, height=span, used_fallback=False)

        return self.fallback(height)

    def fallback(self, height: int) -> TextBounds:
        """Assume the identifier sits in the bottom slice of the strip"""
        span = int(height * self.fallback_fraction)
        logger.warning(f"Text line not found, using bottom fallback | height={span}")
        return TextBounds(start_y=height - span, height=span, used_fallback=True)

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def brightness_profile(self, gray: np.ndarray) -> List[Tuple[int, float]]:
        """Mean luma per row over the left part of the strip, bottom row first"""
        height, width = gray.shape
        sample_width = max(1, int(width * self.brightness_sample_fraction))
        means = gray[:, :sample_width].mean(axis=1)
        return [(y, float(means[y])) for y in range(height - 1, -1, -1)]

    def edge_density_profile(self, gray: np.ndarray) -> List[Tuple[int, float]]:
        """Share of interior pixels above the Sobel threshold, for rows 1..H-2"""
        height, width = gray.shape
        if height < 3 or width < 3:
            return []

        gx = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3)
        gy = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3)
        magnitude = np.sqrt(gx * gx + gy * gy)[1:height - 1, 1:width - 1]

        density = (magnitude > self.sobel_threshold).mean(axis=1)
        return [(y + 1, float(density[y])) for y in range(height - 2)]

    def text_pattern_profile(self, gray: np.ndarray) -> List[Tuple[int, float]]:
        """Average block text-likelihood per row of blocks, bottom row of blocks first"""
        height, width = gray.shape
        size = self.block_size
        variance = self._local_variance(gray)

        block_count = len(range(0, width - size, size))
        used_width = block_count * size

        profile = []
        for y in range(height - size, -1, -size):
            if block_count == 0:
                profile.append((y, 0.0))
                continue

            slab = gray[y:y + size, :used_width].reshape(size, block_count, size)
            var_slab = variance[y:y + size, :used_width].reshape(size, block_count, size)

            bright = (slab > self.block_bright_luma).sum(axis=(0, 2))
            dark = size * size - bright
            contrast = np.minimum(bright, dark) / np.maximum(bright, dark)
            block_variance = var_slab.mean(axis=(0, 2))

            low, high = self.block_contrast_range
            var_low, var_high = self.block_variance_range
            scores = (0.5 * ((contrast >= low) & (contrast <= high))
                      + 0.5 * ((block_variance >= var_low) & (block_variance <= var_high)))
            profile.append((y, float(scores.mean())))

        return profile

    @staticmethod
    def _local_variance(gray: np.ndarray) -> np.ndarray:
        """Population variance of each pixel's 3x3 neighbourhood, clipped to the image"""
        ones = np.ones_like(gray)
        kwargs = dict(ksize=(3, 3), normalize=False, borderType=cv2.BORDER_CONSTANT)
        count = cv2.boxFilter(ones, -1, **kwargs)
        total = cv2.boxFilter(gray, -1, **kwargs)
        total_sq = cv2.boxFilter(gray * gray, -1, **kwargs)

        mean = total / count
        return np.maximum(total_sq / count - mean * mean, 0.0)

    # ------------------------------------------------------------------
    # Peaks and fusion
    # ------------------------------------------------------------------

    def find_brightness_peaks(self, profile: Sequence[Tuple[int, float]]) -> List[int]:
        peaks = []
        for i in range(1, len(profile) - 1):
            y, value = profile[i]
            if (value > self.brightness_peak_floor
                    and value > profile[i - 1][1] + self.brightness_peak_delta
                    and value > profile[i + 1][1] + self.brightness_peak_delta):
                peaks.append(y)
        return peaks

    def find_edge_density_peaks(self, profile: Sequence[Tuple[int, float]]) -> List[int]:
        peaks = []
        for i in range(1, len(profile) - 1):
            y, value = profile[i]
            if value > self.edge_density_floor and value > profile[i - 1][1] and value > profile[i + 1][1]:
                peaks.append(y)
        return peaks

    def find_text_pattern_peaks(self, profile: Sequence[Tuple[int, float]]) -> List[int]:
        return [y for y, value in profile if value > self.pattern_floor]

    def rank_candidates(
        self,
        brightness_peaks: Sequence[int],
        edge_peaks: Sequence[int],
        text_peaks: Sequence[int]
    ) -> List[Tuple[int, int]]:
        """Score each brightness peak by nearby support; best first, ties to the smaller y"""
        candidates = []
        for b_peak in brightness_peaks:
            score = 1
            if any(abs(e_peak - b_peak) <= self.tolerance for e_peak in edge_peaks):
                score += 1
            if any(abs(t_peak - b_peak) <= self.tolerance for t_peak in text_peaks):
                score += 1
            candidates.append((b_peak, score))

        candidates.sort(key=lambda item: (-item[1], item[0]))
        return candidates

    def combine_evidence(
        self,
        brightness_peaks: Sequence[int],
        edge_peaks: Sequence[int],
        text_peaks: Sequence[int]
    ) -> Optional[Tuple[int, int]]:
        ranked = self.rank_candidates(brightness_peaks, edge_peaks, text_peaks)
        if not ranked:
            return None
        logger.debug(f"Consensus candidates | {ranked[:5]}")
        return ranked[0]
