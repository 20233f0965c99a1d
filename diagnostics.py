"""
Collector Scan - Scan Diagnostics
Per-scan record of intermediate images, step outcomes and the OCR candidate.
A fresh sink is created for every scan and handed back with its result.
"""
import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import cv2

from logger import get_logger
from raster import RasterImage

logger = get_logger('diagnostics')

SNAPSHOT_NAMES = ('original', 'quadrant', 'bottom_cropped', 'left_cropped', 'text_area', 'final')


class DiagnosticsSink:
    def __init__(self):
        self.created_at = datetime.now()
        self.snapshots: Dict[str, RasterImage] = {}
        self.steps: List[Dict[str, Any]] = []
        self.original_size: Optional[Dict[str, int]] = None
        self.surface_stats: Optional[Dict[str, float]] = None
        self.candidate = None
        self.parsed = None

    def snapshot(self, name: str, image: RasterImage):
        if name not in SNAPSHOT_NAMES:
            raise ValueError(f"Unknown snapshot name: {name}")
        self.snapshots[name] = image
        if name == 'original':
            self.original_size = {'width': image.width, 'height': image.height}

    def record_step(self, step: int, name: str, status: str, **details):
        entry = {'step': step, 'name': name, 'status': status}
        entry.update(details)
        self.steps.append(entry)
        logger.debug(f"Step recorded | step={step} | name={name} | status={status}")

    def failed_step(self) -> Optional[Dict[str, Any]]:
        for entry in self.steps:
            if entry['status'] == 'FAILED':
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created_at': self.created_at.isoformat(),
            'original_size': self.original_size,
            'steps': self.steps,
            'surface_stats': self.surface_stats,
            'candidate': self.candidate.to_dict() if self.candidate is not None else None,
            'parsed': self.parsed.to_dict() if self.parsed is not None else None,
            'snapshots': {name: {'width': img.width, 'height': img.height}
                          for name, img in self.snapshots.items()},
        }

    def save(self, directory) -> List[str]:
        """
        Write every snapshot as PNG plus a JSON summary into directory

        Returns:
            Paths of the written files
        """
        os.makedirs(directory, exist_ok=True)
        stamp = self.created_at.strftime('%Y%m%d_%H%M%S_%f')
        written = []

        for name, image in self.snapshots.items():
            path = os.path.join(directory, f"{stamp}_{name}.png")
            if not cv2.imwrite(path, image.to_bgr()):
                logger.error(f"Could not write debug image | path={path}")
                continue
            written.append(path)

        summary_path = os.path.join(directory, f"{stamp}_summary.json")
        with open(summary_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        written.append(summary_path)

        logger.info(f"Diagnostics saved | dir={directory} | files={len(written)}")
        return written
