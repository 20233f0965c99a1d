"""
Collector Scan - Region Conditioner
Turns the located text area into a dark-on-light grayscale image for OCR
"""
import numpy as np

import config
from logger import get_logger
from raster import RasterImage
from surface_classifier import FoilDetectionResult

logger = get_logger('conditioner')


class RegionConditioner:
    """Grayscale, contrast stretch and inversion, with a separate curve for foil cards"""

    def __init__(
        self,
        contrast_factor: float = config.CONDITION_CONTRAST_FACTOR,
        midpoint: float = config.CONDITION_MIDPOINT,
        foil_bright_average: float = config.CONDITION_FOIL_BRIGHT_AVERAGE,
        foil_dark_average: float = config.CONDITION_FOIL_DARK_AVERAGE,
        foil_thresholds: dict = None,
        foil_high_gain: float = config.CONDITION_FOIL_HIGH_GAIN,
        foil_low_gain: float = config.CONDITION_FOIL_LOW_GAIN
    ):
        self.contrast_factor = contrast_factor
        self.midpoint = midpoint
        self.foil_bright_average = foil_bright_average
        self.foil_dark_average = foil_dark_average
        self.foil_thresholds = foil_thresholds or dict(config.CONDITION_FOIL_THRESHOLDS)
        self.foil_high_gain = foil_high_gain
        self.foil_low_gain = foil_low_gain

    def condition(self, image: RasterImage, foil: FoilDetectionResult) -> RasterImage:
        """Return a new RasterImage with the conditioned gray in R, G and B"""
        gray = image.luma()

        if foil.is_foil:
            threshold = self.foil_threshold(foil.stats.average_brightness)
            values = self._foil_curve(gray, threshold)
            logger.debug(f"Foil conditioning | threshold={threshold}")
        else:
            values = self._standard_curve(gray)
            logger.debug(f"Standard conditioning | factor={self.contrast_factor}")

        inverted = 255 - np.rint(np.clip(values, 0, 255))

        pixels = np.array(image.pixels, copy=True)
        pixels[:, :, 0] = inverted
        pixels[:, :, 1] = inverted
        pixels[:, :, 2] = inverted
        return RasterImage(pixels)

    def foil_threshold(self, average_brightness: float) -> int:
        if average_brightness > self.foil_bright_average:
            return self.foil_thresholds['bright']
        if average_brightness < self.foil_dark_average:
            return self.foil_thresholds['dark']
        return self.foil_thresholds['default']

    def _standard_curve(self, gray: np.ndarray) -> np.ndarray:
        return (gray - self.midpoint) * self.contrast_factor + self.midpoint

    def _foil_curve(self, gray: np.ndarray, threshold: float) -> np.ndarray:
        above = 128 + (gray - threshold) * (127 / (255 - threshold)) * self.foil_high_gain
        below = (gray / threshold) * 128 * self.foil_low_gain
        return np.where(gray > threshold, above, below)
