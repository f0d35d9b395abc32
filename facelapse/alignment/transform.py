"""Per-frame affine transforms that pin the eye-line to a fixed canvas pose."""

import logging
import math
from dataclasses import dataclass

import numpy as np

from facelapse.alignment.geometry import FaceGeometry, Point2D
from facelapse.errors import DegenerateGeometry

log = logging.getLogger("facelapse")

# Eye distances at or below this are treated as coincident detections
EPSILON = 1e-6


@dataclass(frozen=True)
class ViewportConfig:
    canvas_width: int
    canvas_height: int
    zoom: float = 0.25
    target_x_ratio: float = 0.5
    target_y_ratio: float = 0.4

    def __post_init__(self):
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ValueError(f"Canvas size must be positive, got "
                             f"{self.canvas_width}x{self.canvas_height}")
        if not 0.0 < self.zoom <= 1.0:
            raise ValueError(f"Zoom must be in (0, 1], got {self.zoom}")

    @property
    def target_x(self) -> float:
        return self.canvas_width * self.target_x_ratio

    @property
    def target_y(self) -> float:
        return self.canvas_height * self.target_y_ratio

    @property
    def desired_eye_distance(self) -> float:
        return self.canvas_width * self.zoom


@dataclass(frozen=True)
class AffineTransform:
    """2D affine map: x' = a*x + b*y + c, y' = d*x + e*y + f."""
    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    @classmethod
    def from_matrix(cls, m: np.ndarray) -> "AffineTransform":
        return cls(float(m[0, 0]), float(m[0, 1]), float(m[0, 2]),
                   float(m[1, 0]), float(m[1, 1]), float(m[1, 2]))

    def to_matrix(self) -> np.ndarray:
        """Homogeneous 3x3 matrix."""
        return np.array([
            [self.a, self.b, self.c],
            [self.d, self.e, self.f],
            [0.0, 0.0, 1.0],
        ])

    def apply(self, x: float, y: float) -> Point2D:
        return Point2D(self.a * x + self.b * y + self.c,
                       self.d * x + self.e * y + self.f)

    def apply_points(self, points) -> np.ndarray:
        """Map an (N, 2) array of points."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return pts @ self.to_matrix()[:2, :2].T + np.array([self.c, self.f])

    def inverse(self) -> "AffineTransform":
        return AffineTransform.from_matrix(np.linalg.inv(self.to_matrix()))

    @property
    def has_rotation(self) -> bool:
        return self.b != 0.0 or self.d != 0.0


def translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def scaling(s: float) -> np.ndarray:
    return np.array([[s, 0.0, 0.0], [0.0, s, 0.0], [0.0, 0.0, 1.0]])


def rotation(theta: float) -> np.ndarray:
    cos, sin = math.cos(theta), math.sin(theta)
    return np.array([[cos, -sin, 0.0], [sin, cos, 0.0], [0.0, 0.0, 1.0]])


def build_transform(geometry: FaceGeometry, viewport: ViewportConfig) -> AffineTransform:
    """Map source image space onto the canvas so the eyes hit the target pose.

    Composition applied to source points, right to left:
    T(target) . Scale(s) . Rotate(-angle) . T(-eyes_center), with
    s = canvas_width * zoom / eye_distance.

    Raises DegenerateGeometry when the eye distance is at or below EPSILON.
    """
    # Written as a negated comparison so NaN distances are rejected too
    if not geometry.eye_distance > EPSILON:
        raise DegenerateGeometry(geometry.eye_distance)

    scale = viewport.desired_eye_distance / geometry.eye_distance
    cx, cy = geometry.eyes_center
    m = (translation(viewport.target_x, viewport.target_y)
         @ scaling(scale)
         @ rotation(-geometry.angle)
         @ translation(-cx, -cy))
    return AffineTransform.from_matrix(m)


def build_letterbox_transform(image_size: tuple, viewport: ViewportConfig) -> AffineTransform:
    """Centered, uniformly scaled placement of the whole image."""
    img_w, img_h = image_size
    scale = min(viewport.canvas_width / img_w, viewport.canvas_height / img_h)
    x = (viewport.canvas_width - img_w * scale) / 2
    y = (viewport.canvas_height - img_h * scale) / 2
    return AffineTransform.from_matrix(translation(x, y) @ scaling(scale))


def transform_for_frame(frame, viewport: ViewportConfig,
                        align_eyes: bool = True) -> AffineTransform:
    """Eye-aligned transform for a frame, or letterbox when that is unavailable.

    Geometry failures stop here: they downgrade the frame to letterbox.
    """
    if align_eyes and frame.geometry is not None:
        try:
            return build_transform(frame.geometry, viewport)
        except DegenerateGeometry as e:
            log.debug(f"Letterboxing {frame.source}: {e}")
    return build_letterbox_transform(frame.size, viewport)
