import logging
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from facelapse.errors import ExportError

log = logging.getLogger("facelapse")


class VideoEncoder:
    """Writes rendered frames to a constant-rate video via cv2.VideoWriter."""

    def __init__(self, path: str = "face-timelapse.mp4", fps: int = 10, fourcc: str = "mp4v"):
        self.path = str(path)
        self._fps = fps
        self._fourcc = fourcc
        self._writer = None
        self._size = None
        self._count = 0

    def _open(self, size: tuple):
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        writer = cv2.VideoWriter(self.path, cv2.VideoWriter_fourcc(*self._fourcc),
                                 float(self._fps), size)
        if not writer.isOpened():
            raise ExportError(self.path, f"codec {self._fourcc!r} unavailable")
        self._writer = writer
        self._size = size

    def add_frame(self, image: Image.Image, delay_ms: float):
        """Append a frame. The container rate is fixed, so delay_ms is implied by fps."""
        if self._writer is None:
            self._open(image.size)
        if image.size != self._size:
            raise ExportError(self.path, f"frame size {image.size} != {self._size}")
        bgr = cv2.cvtColor(np.asarray(image.convert("RGB")), cv2.COLOR_RGB2BGR)
        self._writer.write(bgr)
        self._count += 1

    def close(self) -> str:
        if self._writer is None:
            raise ExportError(self.path, "no frames")
        self._writer.release()
        self._writer = None
        log.info(f"Wrote {self._count} frames to {self.path}")
        return self.path

    def abort(self):
        """Release the writer and delete the partial file."""
        if self._writer is not None:
            self._writer.release()
            self._writer = None
        Path(self.path).unlink(missing_ok=True)
        log.info(f"Discarded partial video {self.path} after {self._count} frames")
