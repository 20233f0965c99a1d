"""
Collector Scan - Detection Pipeline
Cuts a card photo down to the conditioned identifier line:

    1. lower-left quadrant crop
    2. bottom card edge  -> crop below the border
    3. left card edge    -> crop left of the border, foil classification
    4. text line bounds  -> crop to the line, conditioning for OCR
"""
from dataclasses import dataclass
from typing import Optional

import config
from diagnostics import DiagnosticsSink
from edge_scanner import EdgeScanner
from errors import GeometryNotFound
from logger import get_logger, PerformanceLogger
from raster import RasterImage, Rect
from region_conditioner import RegionConditioner
from surface_classifier import FoilDetectionResult, SurfaceClassifier
from text_line_locator import TextBounds, TextLineLocator

logger = get_logger('pipeline')


@dataclass(frozen=True)
class DetectionResult:
    conditioned: RasterImage
    text_area: RasterImage
    foil: FoilDetectionResult
    text_bounds: TextBounds
    bottom_edge: int
    left_edge: int


class DetectionPipeline:
    """Runs the geometric stages in order; every stage returns a new image"""

    def __init__(
        self,
        edge_scanner: EdgeScanner = None,
        surface_classifier: SurfaceClassifier = None,
        text_locator: TextLineLocator = None,
        conditioner: RegionConditioner = None,
        quadrant_fraction: float = config.QUADRANT_FRACTION
    ):
        self.edge_scanner = edge_scanner or EdgeScanner()
        self.surface_classifier = surface_classifier or SurfaceClassifier()
        self.text_locator = text_locator or TextLineLocator()
        self.conditioner = conditioner or RegionConditioner()
        self.quadrant_fraction = quadrant_fraction

    def run(self, image: RasterImage, diagnostics: Optional[DiagnosticsSink] = None) -> DetectionResult:
        """
        Raises:
            GeometryNotFound: when an edge is missing or a crop comes out empty
        """
        sink = diagnostics if diagnostics is not None else DiagnosticsSink()
        sink.snapshot('original', image)
        logger.info(f"Detection started | size={image.width}x{image.height}")

        # Step 1
        quadrant = self.crop_to_quadrant(image)
        sink.snapshot('quadrant', quadrant)
        sink.record_step(1, 'Quadrant Crop', 'SUCCESS', size=_size(quadrant))

        # Step 2
        with PerformanceLogger("bottom_edge", logger) as perf:
            bottom_edge = self.edge_scanner.find_bottom_edge(quadrant)
        if bottom_edge is None:
            sink.record_step(2, 'Bottom Edge Detection', 'FAILED', elapsed_ms=perf.elapsed_ms)
            raise GeometryNotFound('bottom_edge', 'no dark border row near the right side')

        bottom_cropped = quadrant.crop(Rect(0, 0, quadrant.width, bottom_edge + 1), stage='bottom_edge')
        sink.snapshot('bottom_cropped', bottom_cropped)
        sink.record_step(2, 'Bottom Edge Detection', 'SUCCESS',
                         bottom_edge=bottom_edge, size=_size(bottom_cropped), elapsed_ms=perf.elapsed_ms)

        # Step 3
        with PerformanceLogger("left_edge", logger) as perf:
            left_edge = self.edge_scanner.find_left_edge(bottom_cropped)
        if left_edge is None:
            sink.record_step(3, 'Left Edge Detection', 'FAILED', elapsed_ms=perf.elapsed_ms)
            raise GeometryNotFound('left_edge', 'no dark border column near the bottom')

        left_cropped = bottom_cropped.crop(
            Rect(left_edge, 0, bottom_cropped.width - left_edge, bottom_cropped.height),
            stage='left_edge'
        )
        sink.snapshot('left_cropped', left_cropped)

        foil = self.surface_classifier.classify(left_cropped)
        sink.surface_stats = foil.stats.to_dict()
        sink.record_step(3, 'Left Edge Detection', 'SUCCESS',
                         left_edge=left_edge, foil_detected=foil.is_foil,
                         foil_stats=foil.stats.to_dict(), size=_size(left_cropped),
                         elapsed_ms=perf.elapsed_ms)

        # Step 4
        with PerformanceLogger("text_line", logger) as perf:
            bounds = self.text_locator.locate(left_cropped)
        try:
            text_area = left_cropped.crop(
                Rect(0, bounds.start_y, left_cropped.width, bounds.height), stage='text_area'
            )
        except GeometryNotFound:
            sink.record_step(4, 'Text Line Detection', 'FAILED',
                             text_bounds={'start_y': bounds.start_y, 'height': bounds.height},
                             elapsed_ms=perf.elapsed_ms)
            raise
        sink.snapshot('text_area', text_area)

        conditioned = self.conditioner.condition(text_area, foil)
        sink.snapshot('final', conditioned)
        sink.record_step(4, 'Text Line Detection & OCR Optimization', 'SUCCESS',
                         used_fallback=bounds.used_fallback,
                         text_bounds={'start_y': bounds.start_y, 'height': bounds.height},
                         size=_size(conditioned), elapsed_ms=perf.elapsed_ms)

        logger.info(
            f"Detection complete | bottom_edge={bottom_edge} | left_edge={left_edge} "
            f"| foil={foil.is_foil} | text={bounds.start_y}+{bounds.height} | fallback={bounds.used_fallback}"
        )
        return DetectionResult(
            conditioned=conditioned,
            text_area=text_area,
            foil=foil,
            text_bounds=bounds,
            bottom_edge=bottom_edge,
            left_edge=left_edge,
        )

    def crop_to_quadrant(self, image: RasterImage) -> RasterImage:
        width = int(image.width * self.quadrant_fraction)
        height = int(image.height * self.quadrant_fraction)
        top = int(image.height * (1 - self.quadrant_fraction))
        return image.crop(Rect(0, top, width, height), stage='quadrant')


def _size(image: RasterImage):
    return {'width': image.width, 'height': image.height}
