"""Largest uniform zoom that keeps every aligned frame inside the canvas."""

import logging
import math

import numpy as np

from facelapse.alignment.geometry import FaceGeometry
from facelapse.alignment.transform import EPSILON, ViewportConfig
from facelapse.errors import InfeasibleFit
from facelapse.utils.math_helpers import clamp, floor_to_step

log = logging.getLogger("facelapse")

DEFAULT_MARGIN = 0.95


def image_corners(image_size: tuple) -> np.ndarray:
    w, h = image_size
    return np.array([[0.0, 0.0], [w, 0.0], [w, h], [0.0, h]])


def _axis_bounds(rot: np.ndarray, extent: float, target: float) -> np.ndarray:
    """Upper bounds on scale from 0 <= scale * rot + target <= extent."""
    pos = rot[rot > 0]
    neg = rot[rot < 0]
    return np.concatenate([(extent - target) / pos, -target / neg])


def safe_scale(geometry: FaceGeometry, image_size: tuple,
               viewport: ViewportConfig) -> float:
    """Largest scale at which all four image corners stay on the canvas.

    Returns math.inf when no corner constrains the scale.
    """
    rel = image_corners(image_size) - np.asarray(geometry.eyes_center, dtype=np.float64)
    cos, sin = math.cos(-geometry.angle), math.sin(-geometry.angle)
    rot_x = rel[:, 0] * cos - rel[:, 1] * sin
    rot_y = rel[:, 0] * sin + rel[:, 1] * cos

    bounds = np.concatenate([
        _axis_bounds(rot_x, viewport.canvas_width, viewport.target_x),
        _axis_bounds(rot_y, viewport.canvas_height, viewport.target_y),
    ])
    if bounds.size == 0:
        return math.inf
    return float(bounds.min())


def scale_to_zoom(scale: float, geometry: FaceGeometry, viewport: ViewportConfig) -> float:
    """Inverse of scale = canvas_width * zoom / eye_distance."""
    return scale * geometry.eye_distance / viewport.canvas_width


def safe_zoom(geometry: FaceGeometry, image_size: tuple,
              viewport: ViewportConfig) -> float:
    """safe_scale expressed in zoom units (eye distance / canvas width)."""
    return scale_to_zoom(safe_scale(geometry, image_size, viewport), geometry, viewport)


def compute_auto_fit_zoom(frames, viewport: ViewportConfig,
                          margin: float = DEFAULT_MARGIN,
                          zoom_min: float = 0.10, zoom_max: float = 1.0,
                          step: float = 0.01) -> float:
    """Find the largest zoom for which no aligned frame is clipped.

    Frames without geometry, or with coincident eyes, are letterboxed and
    do not constrain the result. The raw bound is capped at zoom_max,
    scaled by margin, truncated to step and clamped to [zoom_min, zoom_max].
    With no constraining frame zoom_max is returned unchanged.

    Raises InfeasibleFit when a frame yields a non-positive bound.
    """
    best = zoom_max
    constrained = False
    limiting = None

    for index, frame in enumerate(frames):
        geometry = frame.geometry
        if geometry is None:
            continue
        if not geometry.eye_distance > EPSILON:
            log.debug(f"Auto-fit skipping frame {index}: degenerate eye distance")
            continue

        scale = safe_scale(geometry, frame.size, viewport)
        if not scale > 0:
            raise InfeasibleFit(scale, index)

        constrained = True
        zoom = scale_to_zoom(scale, geometry, viewport)
        if zoom < best:
            best, limiting = zoom, index

    if not constrained:
        log.info(f"Auto-fit: no aligned frames, keeping zoom {zoom_max:.2f}")
        return zoom_max

    fitted = clamp(floor_to_step(best * margin, step), zoom_min, zoom_max)
    if limiting is None:
        log.info(f"Auto-fit zoom {fitted:.2f} (capped at {zoom_max:.2f})")
    else:
        log.info(f"Auto-fit zoom {fitted:.2f} (raw {best:.4f}, limited by frame {limiting})")
    return fitted
