"""
Collector Scan - OCR Engine
Tesseract adapter for reading the conditioned identifier line
"""
import os
import shutil
from abc import ABC, abstractmethod
from typing import Optional

import pytesseract

import config
from errors import EngineFailure
from logger import get_logger, PerformanceLogger
from raster import RasterImage

logger = get_logger('ocr')


class OcrEngine(ABC):
    """
    Interface for OCR engines.

    Engines return the literal transcription; cleanup and scoring happen
    downstream.
    """

    @abstractmethod
    def recognize(self, image: RasterImage) -> str:
        raise NotImplementedError


def find_tesseract() -> Optional[str]:
    """Locate the tesseract binary: TESSERACT_CMD, then PATH, then known install paths"""
    if config.TESSERACT_CMD and os.path.exists(config.TESSERACT_CMD):
        return config.TESSERACT_CMD

    found = shutil.which('tesseract')
    if found:
        return found

    for path in config.TESSERACT_PATHS:
        if os.path.exists(path):
            return path
    return None


class TesseractEngine(OcrEngine):
    """Single raw-line recognition restricted to the identifier alphabet"""

    def __init__(
        self,
        tesseract_cmd: str = None,
        language: str = config.OCR_LANGUAGE,
        page_segmentation_mode: int = config.OCR_PAGE_SEGMENTATION_MODE,
        char_whitelist: str = config.OCR_CHAR_WHITELIST,
        timeout: float = config.OCR_TIMEOUT_SECONDS
    ):
        self.tesseract_cmd = tesseract_cmd or find_tesseract()
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
            logger.info(f"Tesseract found | path={self.tesseract_cmd}")
        else:
            logger.warning("Tesseract NOT found - relying on pytesseract default lookup")

        self.language = language
        self.page_segmentation_mode = page_segmentation_mode
        self.char_whitelist = char_whitelist
        self.timeout = timeout

    @property
    def tesseract_config(self) -> str:
        return (
            f'--psm {self.page_segmentation_mode} '
            f'-c "tessedit_char_whitelist={self.char_whitelist}" '
            f'-c preserve_interword_spaces=1'
        )

    def recognize(self, image: RasterImage) -> str:
        """
        Raises:
            EngineFailure: when tesseract is missing, errors out or times out
        """
        try:
            with PerformanceLogger("tesseract", logger):
                text = pytesseract.image_to_string(
                    image.to_pil().convert('RGB'),
                    lang=self.language,
                    config=self.tesseract_config,
                    timeout=self.timeout
                )
        except pytesseract.TesseractNotFoundError as e:
            raise EngineFailure(f"tesseract not available: {e}") from e
        except pytesseract.TesseractError as e:
            raise EngineFailure(f"tesseract failed: {e}") from e
        except RuntimeError as e:
            # pytesseract signals a timeout with a bare RuntimeError
            raise EngineFailure(f"tesseract timed out after {self.timeout}s: {e}") from e

        logger.info(f"OCR raw text: '{text.strip()}'")
        return text
