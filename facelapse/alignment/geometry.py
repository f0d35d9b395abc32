"""Eye-center geometry derived from raw landmark point clusters."""

import math
from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np

from facelapse.errors import InvalidLandmarks


class Point2D(NamedTuple):
    """Image-space coordinate, y pointing down."""
    x: float
    y: float


@dataclass(frozen=True)
class EyePair:
    left: Point2D
    right: Point2D


@dataclass(frozen=True)
class FaceGeometry:
    """Eye-line pose of one face: midpoint, tilt (radians) and eye distance."""
    eyes_center: Point2D
    angle: float
    eye_distance: float


def centroid(points: Sequence) -> Point2D:
    """Arithmetic mean of a non-empty point cluster."""
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        raise InvalidLandmarks()
    arr = arr.reshape(-1, 2)
    if not np.all(np.isfinite(arr)):
        raise InvalidLandmarks("Eye landmark cluster contains non-finite coordinates")
    cx, cy = arr.mean(axis=0)
    return Point2D(float(cx), float(cy))


def eye_pair(left_eye_points: Sequence, right_eye_points: Sequence) -> EyePair:
    return EyePair(left=centroid(left_eye_points), right=centroid(right_eye_points))


def geometry_from_eyes(eyes: EyePair) -> FaceGeometry:
    dx = eyes.right.x - eyes.left.x
    dy = eyes.right.y - eyes.left.y
    center = Point2D((eyes.left.x + eyes.right.x) / 2, (eyes.left.y + eyes.right.y) / 2)
    return FaceGeometry(
        eyes_center=center,
        angle=math.atan2(dy, dx),
        eye_distance=math.hypot(dx, dy),
    )


def compute_face_geometry(left_eye_points: Sequence,
                          right_eye_points: Sequence) -> FaceGeometry:
    """Derive the eye-line pose from the two eye landmark clusters.

    Each eye is reduced to the centroid of its cluster. Raises
    InvalidLandmarks when either cluster is empty. Coincident eyes yield a
    geometry with eye_distance == 0; callers guard that before scaling.
    """
    return geometry_from_eyes(eye_pair(left_eye_points, right_eye_points))
