"""Timelapse session: frames, canvas, settings and the playback timeline."""

import logging
import threading

from PIL import Image

from facelapse.alignment.autofit import compute_auto_fit_zoom
from facelapse.alignment.transform import ViewportConfig, transform_for_frame
from facelapse.config import Config
from facelapse.errors import ExportError, InfeasibleFit, NoFramesError, SessionBusyError
from facelapse.frames import FrameRecord, iter_frames
from facelapse.playback.sequencer import PlaybackSequencer
from facelapse.render.canvas import Canvas
from facelapse.utils.math_helpers import clamp

log = logging.getLogger("facelapse")


class TimelapseSession:
    """Owns the ordered frames and the single canvas they are rendered to.

    All renders go through one lock, so a transform+draw never interleaves
    with another. An export suspends playback for its whole duration and
    refuses outside render requests until it finishes.
    """

    def __init__(self, config: Config = None):
        self.config = config or Config()
        self._frames: list[FrameRecord] = []
        self._canvas: Canvas | None = None
        self._lock = threading.RLock()
        self._exporting = False

        vp = self.config.viewport
        self._zoom = clamp(vp.zoom, vp.zoom_min, vp.zoom_max)
        self._align_eyes = vp.align_eyes
        self._sequencer = PlaybackSequencer(
            self._render_for_playback,
            fps=self._clamp_fps(self.config.playback.fps),
        )

    # --- Frames -----------------------------------------------------------

    def load(self, frames) -> int:
        """Replace the session's frames. The canvas takes the first frame's size."""
        frames = list(frames)
        if not frames:
            self.reset()
            raise NoFramesError()

        with self._lock:
            self._frames = frames
            width, height = frames[0].size
            self._canvas = Canvas(width, height, self.config.viewport.background)
        # Sequencer lock is taken outside the session lock; tick() nests them the other way
        self._sequencer.set_frame_count(len(frames))

        aligned = sum(1 for f in frames if f.geometry is not None)
        log.info(f"Loaded {len(frames)} frames ({aligned} with eyes), "
                 f"canvas {width}x{height}")
        return len(frames)

    def load_paths(self, paths, detector=None) -> int:
        return self.load(iter_frames(paths, detector))

    def reset(self):
        self._sequencer.stop()
        with self._lock:
            self._frames = []
            self._canvas = None
        self._sequencer.set_frame_count(0)

    @property
    def frames(self) -> tuple:
        return tuple(self._frames)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def canvas(self) -> Canvas | None:
        return self._canvas

    # --- Settings ---------------------------------------------------------

    @property
    def fps(self) -> int:
        return self._sequencer.fps

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def align_eyes(self) -> bool:
        return self._align_eyes

    @property
    def settings(self) -> dict:
        return {"fps": self.fps, "zoom": self._zoom, "align_eyes": self._align_eyes}

    def _clamp_fps(self, fps) -> int:
        p = self.config.playback
        return int(clamp(int(fps), p.fps_min, p.fps_max))

    def set_fps(self, fps: int) -> int:
        self._sequencer.set_fps(self._clamp_fps(fps))
        return self.fps

    def set_zoom(self, zoom: float) -> float:
        vp = self.config.viewport
        self._zoom = clamp(float(zoom), vp.zoom_min, vp.zoom_max)
        self._refresh_if_paused()
        return self._zoom

    def set_align_eyes(self, align: bool):
        self._align_eyes = bool(align)
        self._refresh_if_paused()

    def viewport(self) -> ViewportConfig:
        if self._canvas is None:
            raise NoFramesError("No frames loaded")
        width, height = self._canvas.size
        vp = self.config.viewport
        return ViewportConfig(
            canvas_width=width,
            canvas_height=height,
            zoom=self._zoom,
            target_x_ratio=vp.target_x_ratio,
            target_y_ratio=vp.target_y_ratio,
        )

    # --- Rendering --------------------------------------------------------

    def render(self, index: int) -> Image.Image | None:
        """Draw frame index into the canvas and return the live canvas image."""
        with self._lock:
            if self._exporting:
                raise SessionBusyError()
            return self._render_locked(index)

    def _render_locked(self, index: int) -> Image.Image | None:
        if not 0 <= index < len(self._frames):
            return None
        frame = self._frames[index]
        transform = transform_for_frame(frame, self.viewport(), self._align_eyes)
        self._canvas.clear()
        self._canvas.draw(frame.image, transform)
        return self._canvas.image

    def _render_for_playback(self, index: int):
        with self._lock:
            if self._exporting:
                log.debug(f"Dropping playback render of frame {index} during export")
                return
            self._render_locked(index)

    def _refresh_if_paused(self):
        if self._frames and not self._sequencer.is_playing and not self._exporting:
            self.render(self._sequencer.index)

    # --- Auto-fit ---------------------------------------------------------

    def compute_auto_fit_zoom(self) -> float:
        """Fit the zoom so no frame is clipped, apply it and return it.

        InfeasibleFit propagates with the current zoom left in place.
        """
        if not self._frames:
            return self._zoom

        vp = self.config.viewport
        try:
            zoom = compute_auto_fit_zoom(
                self._frames,
                self.viewport(),
                margin=self.config.autofit.margin,
                zoom_min=vp.zoom_min,
                zoom_max=vp.zoom_max,
                step=vp.zoom_step,
            )
        except InfeasibleFit as e:
            log.warning(f"Auto-fit failed, keeping zoom {self._zoom:.2f}: {e}")
            raise

        return self.set_zoom(zoom)

    # --- Playback ---------------------------------------------------------

    @property
    def is_playing(self) -> bool:
        return self._sequencer.is_playing

    @property
    def current_frame(self) -> int:
        return self._sequencer.index

    @property
    def sequencer(self) -> PlaybackSequencer:
        return self._sequencer

    def play(self):
        if self._exporting:
            raise SessionBusyError()
        if not self._frames:
            raise NoFramesError("No frames loaded")
        self._sequencer.start()

    def pause(self):
        self._sequencer.stop()

    def tick(self, elapsed_ms: float) -> int | None:
        return self._sequencer.tick(elapsed_ms)

    def set_frame(self, index: int) -> int:
        index = self._sequencer.set_frame(index)
        self._refresh_if_paused()
        return index

    # --- Export -----------------------------------------------------------

    def export(self, encoder) -> str:
        """Render every frame in order into encoder, suspending playback meanwhile.

        encoder needs add_frame(image, delay_ms), close() -> output path and
        abort(), which releases partial output when a frame fails.
        """
        if not self._frames:
            raise NoFramesError("Nothing to export")

        was_playing = self._sequencer.is_playing
        # Waits out any in-flight playback render
        self._sequencer.stop()
        with self._lock:
            if self._exporting:
                raise SessionBusyError()
            self._exporting = True

        delay_ms = 1000.0 / self.fps
        path = getattr(encoder, "path", "<encoder>")
        log.info(f"Exporting {len(self._frames)} frames to {path} at {self.fps} fps")
        try:
            for i in range(len(self._frames)):
                with self._lock:
                    image = self._render_locked(i)
                    encoder.add_frame(image.copy(), delay_ms)
            return encoder.close()
        except ExportError as e:
            log.error(f"Export failed: {e}")
            encoder.abort()
            raise
        except Exception as e:
            log.error(f"Export failed: {e}", exc_info=True)
            encoder.abort()
            raise ExportError(path, str(e)) from e
        finally:
            with self._lock:
                self._exporting = False
            if was_playing:
                self._sequencer.start()
