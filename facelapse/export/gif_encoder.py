import logging
from pathlib import Path

from PIL import Image

from facelapse.errors import ExportError

log = logging.getLogger("facelapse")


class GifEncoder:
    """Collects rendered frames and writes them as one animated GIF."""

    def __init__(self, path: str = "face-timelapse.gif", loop: int = 0):
        self.path = str(path)
        self._loop = loop
        self._frames: list[Image.Image] = []
        self._durations: list[int] = []

    def add_frame(self, image: Image.Image, delay_ms: float):
        self._frames.append(image.copy())
        # GIF stores delays in whole milliseconds (10ms units on disk)
        self._durations.append(max(1, round(delay_ms)))

    def close(self) -> str:
        if not self._frames:
            raise ExportError(self.path, "no frames")
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._frames[0].save(
                self.path,
                format="GIF",
                save_all=True,
                append_images=self._frames[1:],
                duration=self._durations,
                loop=self._loop,
            )
        except (OSError, ValueError) as e:
            raise ExportError(self.path, str(e)) from e
        log.info(f"Wrote {len(self._frames)} frames to {self.path}")
        return self.path

    def abort(self):
        """Drop buffered frames without writing anything."""
        self._frames.clear()
        self._durations.clear()
