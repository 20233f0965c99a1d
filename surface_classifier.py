"""
Collector Scan - Surface Classifier
Brightness and color statistics over a card region, and the foil / non-foil vote
"""
from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np

import config
from logger import get_logger
from raster import RasterImage

logger = get_logger('surface')


@dataclass(frozen=True)
class SurfaceStats:
    """Summary statistics used to pick the conditioning strategy"""

    average_brightness: float
    color_variance: float
    bright_pixel_ratio: float
    dark_pixel_ratio: float
    midtone_pixel_ratio: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class FoilDetectionResult:
    is_foil: bool
    stats: SurfaceStats


class SurfaceClassifier:
    """
    Foil cards shimmer (higher chromatic variance) and lose pure black/white
    contrast (more midtones). A region is foil when at least two of the three
    indicators agree.
    """

    def __init__(
        self,
        bright_luma: float = config.FOIL_BRIGHT_LUMA,
        dark_luma: float = config.FOIL_DARK_LUMA,
        color_variance_threshold: float = config.FOIL_COLOR_VARIANCE_THRESHOLD,
        midtone_ratio_threshold: float = config.FOIL_MIDTONE_RATIO_THRESHOLD,
        low_contrast_ratio: float = config.FOIL_LOW_CONTRAST_RATIO,
        min_indicators: int = config.FOIL_MIN_INDICATORS
    ):
        self.bright_luma = bright_luma
        self.dark_luma = dark_luma
        self.color_variance_threshold = color_variance_threshold
        self.midtone_ratio_threshold = midtone_ratio_threshold
        self.low_contrast_ratio = low_contrast_ratio
        self.min_indicators = min_indicators

    def analyze(self, image: RasterImage) -> SurfaceStats:
        """Compute SurfaceStats over every pixel of the region"""
        pixel_count = image.width * image.height
        if pixel_count == 0:
            return SurfaceStats(0.0, 0.0, 0.0, 0.0, 0.0)

        gray = image.luma()
        rgb = image.pixels[:, :, :3].astype(np.float64)
        channel_mean = rgb.mean(axis=2, keepdims=True)

        bright = gray > self.bright_luma
        dark = gray < self.dark_luma
        midtone = ~(bright | dark)

        return SurfaceStats(
            average_brightness=float(gray.mean()),
            color_variance=float(np.abs(rgb - channel_mean).sum(axis=2).mean()),
            bright_pixel_ratio=float(bright.mean()),
            dark_pixel_ratio=float(dark.mean()),
            midtone_pixel_ratio=float(midtone.mean()),
        )

    def is_foil(self, stats: SurfaceStats) -> bool:
        indicators = {
            'high_color_variance': stats.color_variance > self.color_variance_threshold,
            'high_midtone_ratio': stats.midtone_pixel_ratio > self.midtone_ratio_threshold,
            'lower_contrast': (stats.dark_pixel_ratio < self.low_contrast_ratio
                               and stats.bright_pixel_ratio < self.low_contrast_ratio),
        }
        votes = sum(indicators.values())
        logger.debug(f"Foil indicators | {indicators} | votes={votes}")
        return votes >= self.min_indicators

    def classify(self, image: RasterImage) -> FoilDetectionResult:
        stats = self.analyze(image)
        if image.width * image.height == 0:
            logger.warning("Empty region passed to surface classifier, assuming non-foil")
            return FoilDetectionResult(is_foil=False, stats=stats)

        result = FoilDetectionResult(is_foil=self.is_foil(stats), stats=stats)
        logger.info(
            f"Surface classified | foil={result.is_foil} | brightness={stats.average_brightness:.1f} "
            f"| variance={stats.color_variance:.1f} | midtone={stats.midtone_pixel_ratio:.2f}"
        )
        return result
