"""
Collector Scan - Identifier Scorer
Grades OCR transcriptions against the identifier grammar
(SET  RARITY  NUMBER  LANGUAGE, e.g. "FDN U 0125 EN") and picks the better
of the raw and cleaned readings.
"""
import re
from dataclasses import dataclass, asdict
from typing import Dict

import config
from logger import get_logger
from set_codes import SetCodeVocabulary

logger = get_logger('scorer')

RARITY_PATTERN = re.compile(rf"\s[{''.join(config.RARITY_CODES)}]\s")
NUMBER_PATTERN = re.compile(r'\d{3,5}', re.ASCII)
LANGUAGE_PATTERN = re.compile(rf"\b({'|'.join(config.LANGUAGE_CODES)})\b")

_WHITESPACE = re.compile(r'\s+')
_LEADING_RARITY_REPEAT = re.compile(r'^([CUMNR])\1+', re.IGNORECASE)
_DIGIT_REPEAT = re.compile(r'(\d)\1{3,}')
_DISALLOWED = re.compile(r'[^0-9A-Za-z\s/]')


@dataclass(frozen=True)
class IdentifierCandidate:
    raw_text: str
    cleaned_text: str
    raw_score: int
    cleaned_score: int
    final_text: str
    final_score: int
    used_raw: bool

    def to_dict(self) -> Dict:
        return asdict(self)


def clean_ocr_text(raw_text: str) -> str:
    """
    Undo the usual OCR slips on an identifier line.

    "Cc OI25 |" -> "C 0125 1"
    """
    if not raw_text:
        return ''

    cleaned = _WHITESPACE.sub(' ', raw_text.strip())
    cleaned = _LEADING_RARITY_REPEAT.sub(r'\1', cleaned)
    cleaned = _DIGIT_REPEAT.sub(r'\1', cleaned)

    # Common glyph confusions
    cleaned = re.sub(r'[|\\]', '1', cleaned)
    cleaned = cleaned.replace('O', '0')
    cleaned = re.sub(r'[Il]', '1', cleaned)
    cleaned = cleaned.replace('S', '5')

    cleaned = _DISALLOWED.sub('', cleaned)
    cleaned = _WHITESPACE.sub(' ', cleaned.strip())
    return cleaned.upper()


class IdentifierScorer:
    """Scores text by how much of the identifier grammar it contains"""

    def __init__(self, vocabulary: SetCodeVocabulary):
        self.vocabulary = vocabulary

    def score(self, text: str) -> int:
        if not text:
            return 0

        score = 0
        if self.vocabulary.contains(text):
            score += config.SCORE_SET_CODE
        if RARITY_PATTERN.search(text):
            score += config.SCORE_RARITY
        if NUMBER_PATTERN.search(text):
            score += config.SCORE_NUMBER
        if LANGUAGE_PATTERN.search(text):
            score += config.SCORE_LANGUAGE
        if len(text) > config.SCORE_LENGTH_THRESHOLD:
            score += config.SCORE_LENGTH
        return score

    def select(self, raw_text: str) -> IdentifierCandidate:
        """Score the raw transcription and its cleaned variant, keep the better one"""
        raw_text = raw_text or ''
        cleaned_text = clean_ocr_text(raw_text)

        raw_score = self.score(raw_text)
        cleaned_score = self.score(cleaned_text)
        used_raw = raw_score > cleaned_score

        candidate = IdentifierCandidate(
            raw_text=raw_text,
            cleaned_text=cleaned_text,
            raw_score=raw_score,
            cleaned_score=cleaned_score,
            final_text=raw_text if used_raw else cleaned_text,
            final_score=raw_score if used_raw else cleaned_score,
            used_raw=used_raw,
        )
        logger.info(
            f"Candidate selected | raw='{raw_text.strip()}' ({raw_score}) "
            f"| cleaned='{cleaned_text}' ({cleaned_score}) | used_raw={used_raw}"
        )
        return candidate
