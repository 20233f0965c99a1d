"""
Collector Scan - API Integrations
Scryfall card lookup by set code / collector number and the set-code listing
"""
import requests
import time
from typing import Dict, List, Optional
import config
from logger import get_logger

# Initialize logger for this module
logger = get_logger('api')


class RateLimiter:
    """Simple rate limiter for API calls"""
    def __init__(self, calls_per_second: int):
        self.calls_per_second = calls_per_second
        self.last_call = 0

    def wait(self):
        """Wait if necessary to respect rate limit"""
        now = time.time()
        time_since_last = now - self.last_call
        min_interval = 1.0 / self.calls_per_second

        if time_since_last < min_interval:
            time.sleep(min_interval - time_since_last)

        self.last_call = time.time()


class ScryfallAPI:
    """Scryfall API client for Magic: The Gathering cards"""

    def __init__(self, base_url: str = None):
        self.base_url = base_url or config.SCRYFALL_API_BASE
        self.rate_limiter = RateLimiter(config.SCRYFALL_RATE_LIMIT)
        logger.debug("ScryfallAPI initialized")

    def get_card_by_set_and_number(self, set_code: str, collector_number: str,
                                   lang: Optional[str] = None) -> Optional[Dict]:
        """
        Get a specific printing by set code and collector number

        Args:
            set_code: Set code as printed (case-insensitive)
            collector_number: Printed number, leading zeros allowed ("0125")
            lang: Optional Scryfall language code ("de", "ja", ...)

        Returns:
            Parsed card dict, or None when the card is unknown or the call fails
        """
        number = str(int(collector_number)) if str(collector_number).isdigit() else str(collector_number)
        params = {'lang': lang} if lang else None
        logger.debug(f"Scryfall: Getting card | set={set_code} | number={number} | lang={lang}")
        self.rate_limiter.wait()

        try:
            response = requests.get(
                f"{self.base_url}/cards/{set_code.lower()}/{number}",
                params=params,
                headers={'Accept': 'application/json'},
                timeout=10
            )

            if response.status_code == 200:
                logger.info(f"Scryfall: Card retrieved | set={set_code} | number={number}")
                return self._parse_card_data(response.json())
            if response.status_code == 404:
                logger.info(f"Scryfall: Card not found | set={set_code} | number={number} | lang={lang}")
            else:
                logger.warning(f"Scryfall: Unexpected status | set={set_code} | number={number} "
                               f"| status={response.status_code}")
            return None
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Scryfall API error: {e}", exc_info=True)
            return None

    def get_set_codes(self) -> Optional[List[str]]:
        """
        List the codes of every known set, uppercased

        Returns:
            List of set codes, or None when the listing could not be fetched
        """
        logger.debug("Scryfall: Listing sets")
        self.rate_limiter.wait()

        try:
            response = requests.get(
                f"{self.base_url}/sets",
                params={'order': 'set', 'dir': 'asc', 'format': 'json'},
                headers={'Accept': 'application/json'},
                timeout=30
            )

            if response.status_code != 200:
                logger.warning(f"Scryfall: Set listing failed | status={response.status_code}")
                return None

            codes = [entry['code'].upper() for entry in response.json().get('data', []) if entry.get('code')]
            logger.info(f"Scryfall: Set listing fetched | sets={len(codes)}")
            return codes
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Scryfall API error: {e}", exc_info=True)
            return None

    def _parse_card_data(self, data: Dict) -> Dict:
        """Parse Scryfall card data to our format"""
        # Handle double-faced cards
        image_url = data.get('image_uris', {}).get('normal')
        if not image_url and 'card_faces' in data:
            image_url = data['card_faces'][0].get('image_uris', {}).get('normal')

        return {
            'tcg': 'mtg',
            'id': data.get('id'),
            'scryfall_id': data.get('id'),
            'name': data.get('name'),
            'set_code': (data.get('set') or '').upper(),
            'set_name': data.get('set_name'),
            'collector_number': data.get('collector_number'),
            'rarity': data.get('rarity'),
            'card_type': data.get('type_line'),
            'image_url': image_url,
            'artist': data.get('artist'),
            'language': data.get('lang', 'en'),
            'price_usd': data.get('prices', {}).get('usd'),
            'price_usd_foil': data.get('prices', {}).get('usd_foil'),
            'price_eur': data.get('prices', {}).get('eur'),
            'price_eur_foil': data.get('prices', {}).get('eur_foil')
        }
