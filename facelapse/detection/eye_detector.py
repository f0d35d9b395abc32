from dataclasses import dataclass, field

import cv2
import numpy as np
from PIL import Image

from facelapse.alignment.geometry import Point2D
from facelapse.config import DetectionConfig


@dataclass
class EyeLandmarks:
    """Left/right eye point clusters in source pixel coordinates.

    "Left" is the eye nearer the image's left edge.
    """
    left_eye: list = field(default_factory=list)
    right_eye: list = field(default_factory=list)


def box_corners(x: float, y: float, w: float, h: float) -> list:
    return [Point2D(x, y), Point2D(x + w, y), Point2D(x + w, y + h), Point2D(x, y + h)]


class HaarEyeDetector:
    """OpenCV Haar Cascade eye detection inside the largest frontal face."""

    FACE_CASCADE_PATH = cv2.data.haarcascades + "haarcascade_frontalface_default.xml"
    EYE_CASCADE_PATH = cv2.data.haarcascades + "haarcascade_eye.xml"

    def __init__(self, scale_factor: float = 1.1, min_neighbors: int = 5,
                 min_face_size: tuple = (60, 60), min_eye_size: tuple = (15, 15)):
        self._faces = cv2.CascadeClassifier(self.FACE_CASCADE_PATH)
        if self._faces.empty():
            raise RuntimeError(f"Failed to load cascade from {self.FACE_CASCADE_PATH}")
        self._eyes = cv2.CascadeClassifier(self.EYE_CASCADE_PATH)
        if self._eyes.empty():
            raise RuntimeError(f"Failed to load cascade from {self.EYE_CASCADE_PATH}")
        self._scale_factor = scale_factor
        self._min_neighbors = min_neighbors
        self._min_face_size = tuple(min_face_size)
        self._min_eye_size = tuple(min_eye_size)

    @classmethod
    def from_config(cls, config: DetectionConfig) -> "HaarEyeDetector":
        return cls(
            scale_factor=config.scale_factor,
            min_neighbors=config.min_neighbors,
            min_face_size=config.min_face_size,
            min_eye_size=config.min_eye_size,
        )

    def detect(self, image: Image.Image, source: str = None) -> EyeLandmarks | None:
        """Detect both eyes of the largest face. Returns None if either is missing."""
        grey = cv2.cvtColor(np.asarray(image.convert("RGB")), cv2.COLOR_RGB2GRAY)
        faces = self._faces.detectMultiScale(
            grey,
            scaleFactor=self._scale_factor,
            minNeighbors=self._min_neighbors,
            minSize=self._min_face_size,
            flags=cv2.CASCADE_SCALE_IMAGE,
        )
        if len(faces) == 0:
            return None

        # Largest face is the subject
        fx, fy, fw, fh = max(faces, key=lambda f: f[2] * f[3])

        # Eyes sit in the upper part of the face box
        roi = grey[fy:fy + int(fh * 0.6), fx:fx + fw]
        eyes = self._eyes.detectMultiScale(
            roi,
            scaleFactor=self._scale_factor,
            minNeighbors=self._min_neighbors,
            minSize=self._min_eye_size,
        )
        if len(eyes) < 2:
            return None

        pair = sorted(eyes, key=lambda e: e[2] * e[3], reverse=True)[:2]
        pair.sort(key=lambda e: e[0])
        left, right = (box_corners(fx + ex, fy + ey, ew, eh) for ex, ey, ew, eh in pair)
        return EyeLandmarks(left_eye=left, right_eye=right)
