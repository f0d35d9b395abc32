"""Eye landmarks supplied by an external detector as a YAML sidecar file.

Format::

    portrait_001.jpg:
      left_eye: [[412.0, 501.5], [430.2, 495.0], ...]
      right_eye: [[598.1, 499.0], [615.4, 493.8], ...]
    portrait_002.jpg: null   # detection failed
"""

import logging
from pathlib import Path

import yaml

from facelapse.alignment.geometry import Point2D
from facelapse.detection.eye_detector import EyeLandmarks

log = logging.getLogger("facelapse")


class LandmarkFileDetector:
    """Looks up precomputed eye clusters by image file name."""

    def __init__(self, entries: dict):
        self._entries = entries

    @classmethod
    def from_file(cls, path: str) -> "LandmarkFileDetector":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Landmark file {path} must map file names to eye clusters")
        log.info(f"Loaded landmarks for {len(data)} images from {path}")
        return cls(data)

    def detect(self, image, source: str = None) -> EyeLandmarks | None:
        if source is None:
            return None
        entry = self._entries.get(source)
        if entry is None:
            entry = self._entries.get(Path(source).name)
        if entry is None:
            log.debug(f"No landmarks recorded for {source}")
            return None
        return EyeLandmarks(
            left_eye=[Point2D(float(x), float(y)) for x, y in entry.get("left_eye") or []],
            right_eye=[Point2D(float(x), float(y)) for x, y in entry.get("right_eye") or []],
        )
