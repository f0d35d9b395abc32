import logging
import threading
import time

from facelapse.utils.math_helpers import clamp

log = logging.getLogger("facelapse")


class PlaybackSequencer:
    """Advances a frame index on a fixed-interval clock.

    Cooperative and single-threaded at heart: the host calls tick() with the
    time elapsed since its previous call, and when at least one frame interval
    has passed since the last rendered frame the current frame is rendered and
    the index wraps forward. At most one frame is rendered per tick.
    """

    def __init__(self, render, frame_count: int = 0, fps: int = 10):
        self._render = render
        self._frame_count = frame_count
        self._fps = 10
        self.set_fps(fps)

        self._index = 0
        self._playing = False
        # ms since the last rendered frame; None renders on the next tick
        self._since_last = None
        self._lock = threading.RLock()

    @property
    def index(self) -> int:
        return self._index

    @property
    def fps(self) -> int:
        return self._fps

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def interval_ms(self) -> float:
        return 1000.0 / self._fps

    def start(self):
        with self._lock:
            self._playing = True
            self._since_last = None

    def stop(self):
        """Stop playback. Waits for an in-flight render; no tick renders afterwards."""
        with self._lock:
            self._playing = False
            self._since_last = None

    def set_frame(self, index: int) -> int:
        with self._lock:
            if self._frame_count == 0:
                self._index = 0
            else:
                self._index = int(clamp(index, 0, self._frame_count - 1))
            return self._index

    def set_fps(self, fps: int):
        fps = int(fps)
        if fps < 1:
            raise ValueError(f"fps must be >= 1, got {fps}")
        self._fps = fps

    def set_frame_count(self, frame_count: int):
        """Swap in a new frame sequence: stops playback and rewinds to frame 0."""
        with self._lock:
            self._playing = False
            self._since_last = None
            self._frame_count = frame_count
            self._index = 0

    def ms_until_due(self) -> float:
        if self._since_last is None:
            return 0.0
        return max(0.0, self.interval_ms - self._since_last)

    def tick(self, elapsed_ms: float) -> int | None:
        """Advance the clock by elapsed_ms. Returns the rendered index, if any."""
        with self._lock:
            if not self._playing or self._frame_count == 0:
                return None

            if self._since_last is not None:
                self._since_last += elapsed_ms
                if self._since_last < self.interval_ms:
                    return None

            index = self._index
            self._render(index)
            self._index = (index + 1) % self._frame_count
            self._since_last = 0.0
            return index

    def run(self, clock=time.monotonic, sleep=time.sleep):
        """Drive tick() from a real clock until stop() is called."""
        log.info(f"Entering playback loop at {self._fps} FPS")
        last_time = clock()
        while self._playing:
            now = clock()
            self.tick((now - last_time) * 1000.0)
            last_time = now
            sleep(max(self.ms_until_due(), 1.0) / 1000.0)
        log.info("Playback loop stopped")
