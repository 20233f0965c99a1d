"""
Collector Scan - Set Code Vocabulary
Compiled matcher over every known set code, and the daily cache that feeds it.

The vocabulary is an immutable snapshot: a refresh builds a new one, so a
scorer or parser holding the old snapshot keeps a consistent view.
"""
import json
import re
import time
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, Optional

import config
from logger import get_logger

logger = get_logger('set_codes')


class SetCodeVocabulary:
    """Known set codes compiled into a single alternation pattern"""

    def __init__(self, codes: Iterable[str], created_at: Optional[float] = None):
        self._codes: FrozenSet[str] = frozenset(code.strip().upper() for code in codes if code and code.strip())
        self._created_at = time.time() if created_at is None else created_at

        if self._codes:
            # Longest first so FDN wins over a shorter code it contains
            ordered = sorted(self._codes, key=lambda code: (-len(code), code))
            self._pattern_source = f"(?P<collection>{'|'.join(re.escape(code) for code in ordered)})"
        else:
            self._pattern_source = r'(?P<collection>(?!))'
        self._pattern = re.compile(self._pattern_source)

    @property
    def codes(self) -> FrozenSet[str]:
        return self._codes

    @property
    def created_at(self) -> float:
        return self._created_at

    @property
    def pattern_source(self) -> str:
        return self._pattern_source

    def search(self, text: str) -> Optional[str]:
        """First set code appearing anywhere in text, or None"""
        if not text:
            return None
        match = self._pattern.search(text)
        return match.group('collection') if match else None

    def contains(self, text: str) -> bool:
        return self.search(text) is not None

    def age(self, now: Optional[float] = None) -> float:
        return (time.time() if now is None else now) - self._created_at

    def __len__(self) -> int:
        return len(self._codes)

    def __repr__(self) -> str:
        return f"SetCodeVocabulary(codes={len(self._codes)})"


class SetCodeVocabularyCache:
    """
    Keeps the vocabulary fresh for at most `ttl` seconds.

    Lookup order: in-memory snapshot, JSON cache file, Scryfall set listing.
    When the listing fails a stale snapshot is reused, else an empty
    vocabulary is returned (every parse then fails).
    """

    def __init__(
        self,
        api=None,
        cache_file: Path = None,
        ttl: float = config.SET_CODES_TTL,
        retry_interval: float = config.SET_CODES_RETRY_INTERVAL,
        clock: Callable[[], float] = time.time
    ):
        if api is None:
            from api_integrations import ScryfallAPI
            api = ScryfallAPI()
        self.api = api
        self.cache_file = Path(cache_file or config.SET_CODES_CACHE_FILE)
        self.ttl = ttl
        self.retry_interval = retry_interval
        self.clock = clock

        self._snapshot: Optional[SetCodeVocabulary] = None
        self._last_failure: Optional[float] = None

    def get_vocabulary(self, force_refresh: bool = False) -> SetCodeVocabulary:
        now = self.clock()

        if not force_refresh:
            if self._snapshot is not None and self._is_fresh(self._snapshot, now):
                return self._snapshot

            cached = self._load_cache_file()
            if cached is not None and self._is_fresh(cached, now):
                logger.info(f"Set codes loaded from cache | codes={len(cached)} | file={self.cache_file}")
                self._snapshot = cached
                return cached
            if self._snapshot is None:
                self._snapshot = cached

            if self._last_failure is not None and now - self._last_failure < self.retry_interval:
                return self._fallback()

        return self.refresh()

    def refresh(self) -> SetCodeVocabulary:
        """Fetch the set listing and replace the snapshot"""
        now = self.clock()
        codes = self.api.get_set_codes()

        if not codes:
            self._last_failure = now
            logger.warning("Set code listing unavailable")
            return self._fallback()

        vocabulary = SetCodeVocabulary(codes, created_at=now)
        self._snapshot = vocabulary
        self._last_failure = None
        self._save_cache_file(vocabulary)
        logger.info(f"Set codes refreshed | codes={len(vocabulary)}")
        return vocabulary

    def _fallback(self) -> SetCodeVocabulary:
        if self._snapshot is None:
            self._snapshot = self._load_cache_file()

        if self._snapshot is not None:
            logger.warning(f"Using stale set codes | codes={len(self._snapshot)} "
                           f"| age={self._snapshot.age(self.clock()):.0f}s")
            return self._snapshot

        logger.error("No set codes available, identifiers cannot be parsed")
        return SetCodeVocabulary([], created_at=self.clock())

    def _is_fresh(self, vocabulary: SetCodeVocabulary, now: float) -> bool:
        return len(vocabulary) > 0 and vocabulary.age(now) < self.ttl

    def _load_cache_file(self) -> Optional[SetCodeVocabulary]:
        if not self.cache_file.is_file():
            return None

        try:
            with self.cache_file.open('r', encoding='utf-8') as f:
                payload = json.load(f)
            return SetCodeVocabulary(payload['codes'], created_at=float(payload['timestamp']))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable set code cache | file={self.cache_file} | error={e}")
            return None

    def _save_cache_file(self, vocabulary: SetCodeVocabulary):
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with self.cache_file.open('w', encoding='utf-8') as f:
                json.dump({'codes': sorted(vocabulary.codes), 'timestamp': vocabulary.created_at}, f)
        except OSError as e:
            logger.error(f"Failed to write set code cache | file={self.cache_file} | error={e}")
