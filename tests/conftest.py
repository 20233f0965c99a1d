"""
Collector Scan - Test Configuration
Shared fixtures and configuration for all tests
"""
import os
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Console logging only while testing
os.environ.setdefault('LOG_TO_FILE', 'False')

from ocr_engine import OcrEngine  # noqa: E402
from raster import RasterImage  # noqa: E402
from set_codes import SetCodeVocabulary  # noqa: E402


class FakeOcrEngine(OcrEngine):
    """OCR stand-in returning canned text and recording what it was shown"""

    def __init__(self, text='', error=None):
        self.text = text
        self.error = error
        self.calls = []

    def recognize(self, image):
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def vocabulary():
    """Small set code vocabulary"""
    return SetCodeVocabulary(['FDN', 'MKM', 'OTJ', 'DSK', 'BLB', 'M21'])


@pytest.fixture
def make_fake_ocr():
    """Factory for fake OCR engines"""
    return FakeOcrEngine


@pytest.fixture
def sample_scryfall_card():
    """Raw Scryfall card payload"""
    return {
        'id': 'b0e7f1a2-0000-4000-8000-000000000125',
        'name': 'Llanowar Elves',
        'set': 'fdn',
        'set_name': 'Foundations',
        'collector_number': '125',
        'rarity': 'common',
        'type_line': 'Creature — Elf Druid',
        'image_uris': {'normal': 'https://example.com/llanowar.jpg'},
        'artist': 'Chris Rahn',
        'lang': 'en',
        'prices': {'usd': '0.25', 'usd_foil': '1.10', 'eur': '0.20', 'eur_foil': None},
    }


@pytest.fixture
def mock_scryfall(sample_scryfall_card):
    """Scryfall client mock returning a parsed card"""
    from api_integrations import ScryfallAPI

    api = MagicMock()
    api.get_card_by_set_and_number.return_value = ScryfallAPI()._parse_card_data(sample_scryfall_card)
    api.get_set_codes.return_value = ['FDN', 'MKM']
    return api


def build_card_photo() -> np.ndarray:
    """
    2000x1500 photo of a card corner on a light table.

    Black bottom border on rows 1400-1449, black left border on columns 40-89,
    table left of column 40 and below row 1449, one bright identifier row at 1420.
    """
    photo = np.full((1500, 2000, 3), 200, dtype=np.uint8)
    photo[1400:1450, 40:, :] = 0
    photo[:1450, 40:90, :] = 0
    photo[1420, 100:900, :] = 255
    return photo


@pytest.fixture
def card_photo_array():
    return build_card_photo()


@pytest.fixture
def card_photo(card_photo_array):
    """The synthetic card photo as a RasterImage"""
    return RasterImage.from_array(card_photo_array)


@pytest.fixture
def blank_photo():
    """Evenly lit photo with no card border"""
    return RasterImage.from_array(np.full((400, 600, 3), 220, dtype=np.uint8))
