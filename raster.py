"""
Collector Scan - Raster Buffers
RGBA pixel buffer shared by every pipeline stage, and the clamped crop rectangle
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

import config
from errors import GeometryNotFound


@dataclass(frozen=True)
class Rect:
    """Integer rectangle in pixel coordinates"""

    x: int
    y: int
    width: int
    height: int

    def clamp(self, image_width: int, image_height: int) -> Optional['Rect']:
        """
        Clip the rectangle to an image of the given size.

        Returns None when nothing of the rectangle is left inside the image.
        """
        x0 = max(0, int(self.x))
        y0 = max(0, int(self.y))
        x1 = min(int(image_width), int(self.x) + int(self.width))
        y1 = min(int(image_height), int(self.y) + int(self.height))

        if x1 - x0 <= 0 or y1 - y0 <= 0:
            return None
        return Rect(x0, y0, x1 - x0, y1 - y0)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


class RasterImage:
    """
    Owned H x W x 4 uint8 RGBA buffer.

    The pixel array is read-only; every transform builds a new RasterImage.
    """

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"RasterImage expects an HxWx4 array, got shape {pixels.shape}")
        self._pixels = np.array(pixels, dtype=np.uint8, copy=True)
        self._pixels.flags.writeable = False

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'RasterImage':
        """Build from a gray (HxW), RGB (HxWx3) or RGBA (HxWx4) array"""
        array = np.asarray(array)
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)
        array = np.ascontiguousarray(array)

        if array.ndim == 2:
            rgba = cv2.cvtColor(array, cv2.COLOR_GRAY2RGBA)
        elif array.ndim == 3 and array.shape[2] == 3:
            rgba = cv2.cvtColor(array, cv2.COLOR_RGB2RGBA)
        elif array.ndim == 3 and array.shape[2] == 4:
            rgba = array
        else:
            raise ValueError(f"Unsupported image array shape: {array.shape}")
        return cls(rgba)

    @classmethod
    def from_file(cls, image_path: str) -> 'RasterImage':
        """Load an image file from disk"""
        img = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError(f"Could not load image: {image_path}")
        return cls(cv2.cvtColor(img, cv2.COLOR_BGR2RGBA))

    @classmethod
    def from_pil(cls, pil_image: Image.Image) -> 'RasterImage':
        return cls(np.array(pil_image.convert('RGBA')))

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def luma(self) -> np.ndarray:
        """Per-pixel luma as a float64 H x W array"""
        r_weight, g_weight, b_weight = config.LUMA_WEIGHTS
        rgb = self._pixels[:, :, :3].astype(np.float64)
        return r_weight * rgb[:, :, 0] + g_weight * rgb[:, :, 1] + b_weight * rgb[:, :, 2]

    def crop(self, rect: Rect, stage: str = 'crop') -> 'RasterImage':
        """
        Crop to rect after clamping it to the image bounds.

        Raises:
            GeometryNotFound: when the clamped rectangle is empty
        """
        clamped = rect.clamp(self.width, self.height)
        if clamped is None:
            raise GeometryNotFound(stage, f"empty crop {rect} in {self.width}x{self.height} image")
        return RasterImage(
            self._pixels[clamped.y:clamped.y + clamped.height, clamped.x:clamped.x + clamped.width]
        )

    def copy(self) -> 'RasterImage':
        return RasterImage(self._pixels)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self._pixels), 'RGBA')

    def to_bgr(self) -> np.ndarray:
        """BGR copy for cv2.imwrite"""
        return cv2.cvtColor(np.array(self._pixels), cv2.COLOR_RGBA2BGR)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RasterImage):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    __hash__ = None

    def __repr__(self) -> str:
        return f"RasterImage({self.width}x{self.height})"
