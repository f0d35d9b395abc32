from PIL import Image

from facelapse.alignment.geometry import compute_face_geometry
from facelapse.frames import FrameRecord


def make_frame(size=(1000, 1000), left=None, right=None, color=(255, 255, 255), source=""):
    """Solid-color frame, with geometry when both eye centers are given."""
    image = Image.new("RGB", size, color)
    geometry = None
    if left is not None and right is not None:
        geometry = compute_face_geometry([left], [right])
    return FrameRecord(image=image, geometry=geometry, source=source)


class RecordingEncoder:
    """Collects frames like a GIF/video encoder would."""

    def __init__(self, path="out.gif", on_frame=None, fail_at=None):
        self.path = path
        self.frames = []
        self.delays = []
        self.closed = False
        self.aborted = False
        self._on_frame = on_frame
        self._fail_at = fail_at

    def add_frame(self, image, delay_ms):
        if self._fail_at is not None and len(self.frames) == self._fail_at:
            raise RuntimeError("encoder crashed")
        if self._on_frame is not None:
            self._on_frame(len(self.frames))
        self.frames.append(image)
        self.delays.append(delay_ms)

    def close(self):
        self.closed = True
        return self.path

    def abort(self):
        self.aborted = True
