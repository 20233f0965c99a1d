"""
Collector Scan - Configuration
"""
import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).parent

# Data directory (set code cache)
DATA_DIR = BASE_DIR / 'data'

# Debug snapshots
DEBUG_DIR = BASE_DIR / 'uploads' / 'debug'
DEBUG_SAVE_IMAGES = os.environ.get('DEBUG_SAVE_IMAGES', 'False') == 'True'

# Luma weights (ITU-R BT.601)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Step 1 - the identifier line sits in the lower-left quadrant of the frame
QUADRANT_FRACTION = 0.5

# Edge scanning
EDGE_DARK_LUMA_THRESHOLD = 100
EDGE_MAJORITY_FRACTION = 0.6
EDGE_BOTTOM_STRIP_FRACTION = 0.15   # share of width sampled at the right border
EDGE_LEFT_STRIP_FRACTION = 0.10     # share of height sampled at the bottom border
EDGE_MIN_STRIP_PIXELS = 3

# Foil / surface classification
FOIL_BRIGHT_LUMA = 180
FOIL_DARK_LUMA = 75
FOIL_COLOR_VARIANCE_THRESHOLD = 15
FOIL_MIDTONE_RATIO_THRESHOLD = 0.4
FOIL_LOW_CONTRAST_RATIO = 0.3
FOIL_MIN_INDICATORS = 2

# Text line location
TEXT_BRIGHTNESS_SAMPLE_FRACTION = 0.8
TEXT_BRIGHTNESS_PEAK_DELTA = 10
TEXT_BRIGHTNESS_PEAK_FLOOR = 30
TEXT_SOBEL_THRESHOLD = 50
TEXT_EDGE_DENSITY_FLOOR = 0.1
TEXT_BLOCK_SIZE = 8
TEXT_BLOCK_BRIGHT_LUMA = 128
TEXT_BLOCK_CONTRAST_RANGE = (0.2, 0.8)
TEXT_BLOCK_VARIANCE_RANGE = (200, 2000)
TEXT_PATTERN_FLOOR = 0.3
TEXT_CONSENSUS_TOLERANCE = 20       # pixels
TEXT_SPAN_MAX_PIXELS = 60
TEXT_SPAN_FRACTION = 0.08
TEXT_FALLBACK_FRACTION = 0.15

# Region conditioning
CONDITION_CONTRAST_FACTOR = 2.5
CONDITION_MIDPOINT = 128
CONDITION_FOIL_BRIGHT_AVERAGE = 140
CONDITION_FOIL_DARK_AVERAGE = 100
CONDITION_FOIL_THRESHOLDS = {'bright': 160, 'dark': 100, 'default': 128}
CONDITION_FOIL_HIGH_GAIN = 1.8
CONDITION_FOIL_LOW_GAIN = 0.6

# Identifier grammar
RARITY_CODES = ['C', 'U', 'R', 'M', 'B', 'L', 'S', 'T']
LANGUAGE_CODES = ['EN', 'DE', 'FR', 'ES', 'IT', 'PT', 'JP', 'KO', 'RU', 'ZH']
DEFAULT_LANGUAGE = 'EN'
SCORE_SET_CODE = 50
SCORE_RARITY = 15
SCORE_NUMBER = 30
SCORE_LANGUAGE = 10
SCORE_LENGTH = 5
SCORE_LENGTH_THRESHOLD = 10

# OCR engine - identifiers are language independent, always English
OCR_LANGUAGE = 'eng'
OCR_PAGE_SEGMENTATION_MODE = 13     # raw line
OCR_CHAR_WHITELIST = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz /'
OCR_TIMEOUT_SECONDS = 30
TESSERACT_CMD = os.environ.get('TESSERACT_CMD')
TESSERACT_PATHS = [
    r'C:\Program Files\Tesseract-OCR\tesseract.exe',
    r'C:\Program Files (x86)\Tesseract-OCR\tesseract.exe',
    os.path.expandvars(r'%LOCALAPPDATA%\Programs\Tesseract-OCR\tesseract.exe'),
    '/usr/local/bin/tesseract',
    '/opt/homebrew/bin/tesseract',
]

# API Configuration - Scryfall
SCRYFALL_API_BASE = 'https://api.scryfall.com'
SCRYFALL_RATE_LIMIT = 10  # requests per second

# Set code vocabulary
SET_CODES_CACHE_FILE = DATA_DIR / 'set_codes.json'
SET_CODES_TTL = 24 * 3600  # refresh at most once a day
SET_CODES_RETRY_INTERVAL = 300  # seconds between listing attempts after a failure
