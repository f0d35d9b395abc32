"""Frame records and the lazy image ingestion pipeline."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Sequence

from PIL import Image, ImageOps

from facelapse.alignment.geometry import FaceGeometry, compute_face_geometry
from facelapse.errors import InvalidLandmarks

log = logging.getLogger("facelapse")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp"}


@dataclass(frozen=True)
class FrameRecord:
    """One decoded input image and its eye-line geometry, if detection succeeded."""
    image: Image.Image
    geometry: Optional[FaceGeometry] = None
    source: str = ""

    @property
    def size(self) -> tuple:
        return self.image.size


def is_image_path(path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def read_image(path) -> Image.Image:
    """Decode an image file to RGB with its EXIF orientation applied."""
    with Image.open(path) as img:
        img = ImageOps.exif_transpose(img)
        return img.convert("RGB")


def build_frame(image: Image.Image, landmarks, source: str = "") -> FrameRecord:
    """Attach geometry derived from detector landmarks (or None) to an image."""
    geometry = None
    if landmarks is not None:
        try:
            geometry = compute_face_geometry(landmarks.left_eye, landmarks.right_eye)
        except InvalidLandmarks as e:
            log.warning(f"{source or 'frame'}: {e}, using centered placement")
    return FrameRecord(image=image, geometry=geometry, source=source)


def iter_frames(paths: Sequence, detector=None) -> Iterator[FrameRecord]:
    """Yield a FrameRecord per readable image, in input order.

    Non-image paths are filtered out up front. A file that fails to decode
    or detect is logged and skipped. Calling again restarts from the first
    path. With no detector every frame is geometry-absent.
    """
    candidates = [Path(p) for p in paths if is_image_path(p)]
    total = len(candidates)

    for i, path in enumerate(candidates):
        log.info(f"Processing image {i + 1} of {total}: {path.name}")
        try:
            image = read_image(path)
            landmarks = detector.detect(image, str(path)) if detector is not None else None
        except Exception as e:
            log.warning(f"Failed to process image {path.name}: {e}")
            continue

        frame = build_frame(image, landmarks, str(path))
        if frame.geometry is None:
            log.info(f"No eyes found in {path.name}")
        yield frame


def load_frames(paths: Sequence, detector=None) -> list:
    return list(iter_frames(paths, detector))
