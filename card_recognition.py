"""
Collector Scan - Card Recognition Engine
Reads the printed identifier line (set code, collector number, language) from a
card photo and looks the printing up on Scryfall.
"""
import threading
from dataclasses import dataclass
from typing import Dict, Union

import config
from detection_pipeline import DetectionPipeline, DetectionResult
from diagnostics import DiagnosticsSink
from errors import GeometryNotFound, ParseFailure, ScannerBusyError
from identifier_parser import IdentifierParser, ParsedIdentifier, language_display_name, map_language_code
from identifier_scorer import IdentifierCandidate, IdentifierScorer
from logger import get_logger, PerformanceLogger
from ocr_engine import OcrEngine, TesseractEngine
from raster import RasterImage
from set_codes import SetCodeVocabulary, SetCodeVocabularyCache

# Initialize logger for this module
logger = get_logger('recognition')


@dataclass(frozen=True)
class ScanOutcome:
    """Everything one successful identifier scan produced"""

    detection: DetectionResult
    candidate: IdentifierCandidate
    parsed: ParsedIdentifier
    diagnostics: DiagnosticsSink

    @property
    def is_foil(self) -> bool:
        return self.detection.foil.is_foil


class CardRecognitionEngine:
    """Main card recognition engine: detection pipeline, OCR, grammar scoring and lookup"""

    def __init__(
        self,
        ocr_engine: OcrEngine = None,
        vocabulary: SetCodeVocabulary = None,
        vocabulary_cache: SetCodeVocabularyCache = None,
        scryfall_api=None,
        pipeline: DetectionPipeline = None,
        save_debug_images: bool = config.DEBUG_SAVE_IMAGES,
        debug_dir=config.DEBUG_DIR
    ):
        if scryfall_api is None:
            from api_integrations import ScryfallAPI
            scryfall_api = ScryfallAPI()
        self.scryfall_api = scryfall_api

        self.ocr_engine = ocr_engine or TesseractEngine()
        self.pipeline = pipeline or DetectionPipeline()
        self.save_debug_images = save_debug_images
        self.debug_dir = debug_dir

        # A fixed vocabulary wins over the refreshing cache
        self._vocabulary = vocabulary
        if vocabulary is None and vocabulary_cache is None:
            vocabulary_cache = SetCodeVocabularyCache(api=self.scryfall_api)
        self.vocabulary_cache = vocabulary_cache

        self._scan_lock = threading.Lock()

        logger.info("CardRecognitionEngine initialized")

    @property
    def is_processing(self) -> bool:
        return self._scan_lock.locked()

    @property
    def vocabulary(self) -> SetCodeVocabulary:
        if self._vocabulary is not None:
            return self._vocabulary
        return self.vocabulary_cache.get_vocabulary()

    def scan_identifier(self, image: RasterImage, diagnostics: DiagnosticsSink = None) -> ScanOutcome:
        """
        Run detection, OCR, scoring and parsing on one image.

        Raises:
            ScannerBusyError: another scan is in progress
            GeometryNotFound: the card edge or text line could not be located
            EngineFailure: the OCR engine failed or timed out
            ParseFailure: no set code and collector number in the transcription
        """
        if not self._scan_lock.acquire(blocking=False):
            logger.warning("Scan rejected, scanner busy")
            raise ScannerBusyError()

        sink = diagnostics if diagnostics is not None else DiagnosticsSink()
        try:
            with PerformanceLogger("scan_identifier", logger):
                vocabulary = self.vocabulary
                detection = self.pipeline.run(image, sink)

                raw_text = self.ocr_engine.recognize(detection.conditioned)

                candidate = IdentifierScorer(vocabulary).select(raw_text)
                sink.candidate = candidate

                parsed = IdentifierParser(vocabulary).parse(candidate.final_text)
                sink.parsed = parsed
                if not parsed.is_valid:
                    raise ParseFailure(candidate)

            return ScanOutcome(detection, candidate, parsed, sink)
        finally:
            try:
                if self.save_debug_images:
                    self._save_diagnostics(sink)
            finally:
                self._scan_lock.release()

    def _save_diagnostics(self, sink: DiagnosticsSink):
        # Debug output never changes the scan result
        try:
            sink.save(self.debug_dir)
        except OSError as e:
            logger.error(f"Could not save debug images | dir={self.debug_dir} | error={e}", exc_info=True)

    def recognize_card(self, image: Union[RasterImage, str], lookup: bool = True) -> Dict:
        """
        Main recognition entry point

        Args:
            image: RasterImage or path to an image file
            lookup: query Scryfall for the parsed identifier

        Returns:
            Result dict with 'success', 'card', 'message' and scan details.
            Geometry and parse failures are reported in the dict; engine
            failures and a busy scanner raise.
        """
        if not isinstance(image, RasterImage):
            logger.info(f"Starting card recognition | path={image}")
            image = RasterImage.from_file(image)
        else:
            logger.info(f"Starting card recognition | size={image.width}x{image.height}")

        sink = DiagnosticsSink()
        try:
            outcome = self.scan_identifier(image, sink)
        except GeometryNotFound as e:
            logger.warning(f"Card not detected | stage={e.stage} | detail={e.detail}")
            return {
                'success': False,
                'card': None,
                'error': 'geometry_not_found',
                'stage': e.stage,
                'diagnostics': sink,
                'message': 'Card not clearly detected. Align the lower-left corner of the card and retry.'
            }
        except ParseFailure as e:
            candidate = e.candidate
            logger.warning(f"Identifier not recognized | text='{candidate.final_text if candidate else ''}'")
            return {
                'success': False,
                'card': None,
                'error': 'parse_failure',
                'recognized_text': candidate.final_text if candidate else '',
                'candidate': candidate.to_dict() if candidate else None,
                'diagnostics': sink,
                'message': 'Identifier not recognized. Try better lighting or a steadier shot.'
            }

        parsed = outcome.parsed
        language = parsed.language_or_default
        result = {
            'success': True,
            'card': None,
            'set_code': parsed.set_code,
            'collector_number': parsed.collector_number,
            'language': language,
            'language_display': language_display_name(language),
            'is_foil': outcome.is_foil,
            'recognized_text': outcome.candidate.final_text,
            'candidate': outcome.candidate.to_dict(),
            'diagnostics': sink,
            'message': f"Identifier read: {parsed.set_code} #{parsed.collector_number} ({language})"
        }

        if not lookup:
            return result

        lang = map_language_code(parsed.language) if parsed.language else None
        card_data = self.scryfall_api.get_card_by_set_and_number(parsed.set_code, parsed.collector_number, lang)
        if card_data is None:
            logger.warning(f"No card for identifier | set={parsed.set_code} | number={parsed.collector_number} "
                           f"| lang={lang}")
            result.update({
                'success': False,
                'error': 'card_not_found',
                'message': f"No card found for {parsed.set_code} #{parsed.collector_number}"
            })
            return result

        card_data.update({
            'language': language,
            'language_display': language_display_name(language),
            'is_foil': outcome.is_foil,
        })
        result['card'] = card_data
        result['message'] = (f"Card identified: {card_data.get('name')} "
                             f"({parsed.set_code} #{parsed.collector_number})")
        logger.info(f"Card identified | name={card_data.get('name')} | set={parsed.set_code} "
                    f"| number={parsed.collector_number} | foil={outcome.is_foil}")
        return result
