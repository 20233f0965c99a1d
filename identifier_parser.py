"""
Collector Scan - Identifier Parser
Extracts set code, collector number and language from the selected transcription
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional

import config
from logger import get_logger, log_function_call
from set_codes import SetCodeVocabulary

logger = get_logger('parser')

NUMBER_PATTERN = re.compile(r'\s*(?P<number>\d{3,5})\s*', re.ASCII)
LANGUAGE_PATTERN = re.compile(rf"\b(?P<lang>{'|'.join(config.LANGUAGE_CODES)})\b")

# Printed language code -> Scryfall `lang` parameter
SCRYFALL_LANGUAGE_CODES = {
    'EN': 'en',
    'DE': 'de',
    'FR': 'fr',
    'ES': 'es',
    'IT': 'it',
    'PT': 'pt',
    'JP': 'ja',
    'KO': 'ko',
    'RU': 'ru',
    'ZH': 'zhs',  # simplified Chinese
}

LANGUAGE_DISPLAY_NAMES = {
    'EN': 'English',
    'DE': 'German',
    'FR': 'French',
    'ES': 'Spanish',
    'IT': 'Italian',
    'PT': 'Portuguese',
    'JP': 'Japanese',
    'KO': 'Korean',
    'RU': 'Russian',
    'ZH': 'Chinese',
}


def map_language_code(language: Optional[str]) -> str:
    """Scryfall language for a printed language code, English when unknown"""
    return SCRYFALL_LANGUAGE_CODES.get((language or '').upper(), 'en')


def language_display_name(language: Optional[str]) -> str:
    return LANGUAGE_DISPLAY_NAMES.get((language or '').upper(), 'English')


@dataclass(frozen=True)
class ParsedIdentifier:
    set_code: Optional[str]
    collector_number: Optional[str]
    language: Optional[str]

    @property
    def is_valid(self) -> bool:
        return bool(self.set_code and self.collector_number)

    @property
    def language_or_default(self) -> str:
        return self.language or config.DEFAULT_LANGUAGE

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'set_code': self.set_code,
            'collector_number': self.collector_number,
            'language': self.language,
        }


class IdentifierParser:
    """Parses "FDN U 0125 EN" style lines using the current set code vocabulary"""

    def __init__(self, vocabulary: SetCodeVocabulary):
        self.vocabulary = vocabulary

    @log_function_call(logger)
    def parse(self, text: str) -> ParsedIdentifier:
        cleaned = (text or '').strip().upper()

        set_code = self.vocabulary.search(cleaned)

        number_match = NUMBER_PATTERN.search(cleaned)
        collector_number = number_match.group('number') if number_match else None

        language_match = LANGUAGE_PATTERN.search(cleaned)
        language = language_match.group('lang') if language_match else None

        if set_code and collector_number:
            logger.info(f"Identifier parsed | set={set_code} | number={collector_number} | lang={language}")
            return ParsedIdentifier(set_code, collector_number, language)

        logger.info(
            f"Identifier not parsed | text='{cleaned}' | set={set_code} "
            f"| number={collector_number} | lang={language}"
        )
        return ParsedIdentifier(None, None, None)
