"""
Collector Scan - Edge Scanner
Finds the card's bottom and left borders by majority vote over a strip of dark pixels.

The printed border is near black. Once the photo is cut down to the lower-left
quadrant it contrasts reliably with the table, so it is enough to sample a strip
along the right (bottom edge) or bottom (left edge) border and take the first
row/column whose sampled pixels are mostly dark.
"""
from enum import Enum
from typing import Optional

import numpy as np

import config
from logger import get_logger
from raster import RasterImage

# Initialize logger for this module
logger = get_logger('edge_scanner')


class EdgeOrientation(Enum):
    BOTTOM = 'bottom'
    LEFT = 'left'


class EdgeScanner:
    """Locates the outer card edge in one orientation"""

    def __init__(
        self,
        dark_threshold: float = config.EDGE_DARK_LUMA_THRESHOLD,
        majority_fraction: float = config.EDGE_MAJORITY_FRACTION,
        bottom_strip_fraction: float = config.EDGE_BOTTOM_STRIP_FRACTION,
        left_strip_fraction: float = config.EDGE_LEFT_STRIP_FRACTION,
        min_strip_pixels: int = config.EDGE_MIN_STRIP_PIXELS
    ):
        self.dark_threshold = dark_threshold
        self.majority_fraction = majority_fraction
        self.bottom_strip_fraction = bottom_strip_fraction
        self.left_strip_fraction = left_strip_fraction
        self.min_strip_pixels = min_strip_pixels

    def find_edge(self, image: RasterImage, orientation: EdgeOrientation) -> Optional[int]:
        """
        Return the edge coordinate (row for BOTTOM, column for LEFT), or None
        when no row/column reaches the dark majority.
        """
        if orientation is EdgeOrientation.BOTTOM:
            return self.find_bottom_edge(image)
        if orientation is EdgeOrientation.LEFT:
            return self.find_left_edge(image)
        raise ValueError(f"Unknown edge orientation: {orientation}")

    def find_bottom_edge(self, image: RasterImage) -> Optional[int]:
        """Scan rows bottom-up, sampling the columns next to the right border"""
        strip_width = max(self.min_strip_pixels, int(image.width * self.bottom_strip_fraction))
        strip = image.luma()[:, max(0, image.width - strip_width):]

        dark_ratio = (strip < self.dark_threshold).mean(axis=1)
        rows = np.flatnonzero(dark_ratio >= self.majority_fraction)

        if rows.size == 0:
            logger.debug(f"Bottom edge not found | size={image.width}x{image.height} | strip={strip_width}")
            return None

        edge = int(rows[-1])
        logger.debug(f"Bottom edge found | y={edge} | dark_ratio={dark_ratio[edge]:.2f}")
        return edge

    def find_left_edge(self, image: RasterImage) -> Optional[int]:
        """Scan columns left to right, sampling the rows next to the bottom border"""
        strip_height = max(self.min_strip_pixels, int(image.height * self.left_strip_fraction))
        strip = image.luma()[max(0, image.height - strip_height):, :]

        dark_ratio = (strip < self.dark_threshold).mean(axis=0)
        columns = np.flatnonzero(dark_ratio >= self.majority_fraction)

        if columns.size == 0:
            logger.debug(f"Left edge not found | size={image.width}x{image.height} | strip={strip_height}")
            return None

        edge = int(columns[0])
        logger.debug(f"Left edge found | x={edge} | dark_ratio={dark_ratio[edge]:.2f}")
        return edge
