import threading
import time

import pytest

from facelapse.config import Config, ViewportSettings
from facelapse.errors import ExportError, InfeasibleFit, NoFramesError, SessionBusyError
from facelapse.export.video_encoder import VideoEncoder
from facelapse.session import TimelapseSession
from tests.helpers import RecordingEncoder, make_frame


@pytest.fixture
def session():
    s = TimelapseSession(Config())
    s.load([
        make_frame(size=(200, 200), left=(80, 100), right=(120, 100), color=(255, 0, 0)),
        make_frame(size=(200, 100), color=(0, 255, 0)),
        make_frame(size=(200, 200), left=(100, 100), right=(100, 100), color=(0, 0, 255)),
    ])
    return s


def test_load_sizes_canvas_from_first_frame(session):
    assert session.canvas.size == (200, 200)
    assert session.frame_count == 3
    assert session.current_frame == 0


def test_load_nothing_raises_and_resets(session):
    with pytest.raises(NoFramesError):
        session.load([])
    assert session.frame_count == 0
    assert session.canvas is None


def test_defaults_match_config(session):
    assert session.settings == {"fps": 10, "zoom": 0.25, "align_eyes": True}


def test_render_places_eyes_at_target(session):
    img = session.render(0)
    # eyes center maps to (100, 80); scale 200*0.25/40 = 1.25 keeps it covered
    assert img.getpixel((100, 80)) == (255, 0, 0)


def test_render_letterboxes_frames_without_eyes(session):
    img = session.render(1)
    assert img.getpixel((100, 100)) == (0, 255, 0)
    assert img.getpixel((100, 10)) == (0, 0, 0)
    assert img.getpixel((100, 190)) == (0, 0, 0)


def test_render_letterboxes_degenerate_frame(session):
    img = session.render(2)
    assert img.getpixel((0, 0)) == (0, 0, 255)
    assert img.getpixel((199, 199)) == (0, 0, 255)


def test_render_out_of_range_is_noop(session):
    assert session.render(99) is None


def test_settings_are_clamped(session):
    assert session.set_fps(120) == 60
    assert session.set_fps(0) == 1
    assert session.set_zoom(5) == 1.0
    assert session.set_zoom(0.01) == 0.1


def test_align_toggle_rerenders_when_paused(session):
    session.render(0)
    session.set_align_eyes(False)
    # letterboxed full-canvas square image
    assert session.canvas.image.getpixel((0, 0)) == (255, 0, 0)
    assert session.settings["align_eyes"] is False


def test_playback_ticks_advance_frames(session):
    session.play()
    assert session.tick(0) == 0
    assert session.tick(100) == 1
    assert session.current_frame == 2
    session.pause()
    assert session.tick(100) is None


def test_play_without_frames_raises():
    with pytest.raises(NoFramesError):
        TimelapseSession().play()


def test_auto_fit_updates_zoom(session):
    zoom = session.compute_auto_fit_zoom()
    assert 0.1 <= zoom <= 1.0
    assert session.zoom == zoom


def test_auto_fit_without_frames_keeps_zoom():
    s = TimelapseSession()
    assert s.compute_auto_fit_zoom() == 0.25


def test_infeasible_fit_keeps_zoom():
    config = Config(viewport=ViewportSettings(target_x_ratio=1.5))
    s = TimelapseSession(config)
    s.load([make_frame(size=(100, 100), left=(40, 50), right=(60, 50))])
    s.set_zoom(0.3)
    with pytest.raises(InfeasibleFit):
        s.compute_auto_fit_zoom()
    assert s.zoom == 0.3


def test_export_renders_every_frame_with_fps_delay(session):
    session.set_fps(4)
    encoder = RecordingEncoder()
    assert session.export(encoder) == "out.gif"
    assert encoder.closed
    assert len(encoder.frames) == 3
    assert encoder.delays == [250.0, 250.0, 250.0]
    assert encoder.frames[1].getpixel((100, 10)) == (0, 0, 0)


def test_export_suspends_and_resumes_playback(session):
    seen = []

    def during_export(i):
        seen.append(session.is_playing)
        assert session.tick(1000) is None
        with pytest.raises(SessionBusyError):
            session.render(0)
        with pytest.raises(SessionBusyError):
            session.play()

    session.play()
    session.tick(0)
    session.export(RecordingEncoder(on_frame=during_export))
    assert seen == [False, False, False]
    assert session.is_playing


def test_export_failure_resumes_and_wraps_error(session):
    session.play()
    encoder = RecordingEncoder(fail_at=1)
    with pytest.raises(ExportError):
        session.export(encoder)
    assert encoder.aborted
    assert not encoder.closed
    assert session.is_playing
    assert session.render(0) is not None


def test_export_without_frames_raises():
    with pytest.raises(NoFramesError):
        TimelapseSession().export(RecordingEncoder())


def test_reset_clears_session(session):
    session.play()
    session.reset()
    assert not session.is_playing
    assert session.frame_count == 0
    assert session.tick(100) is None


def test_failed_video_export_releases_writer(session, tmp_path):
    class FailingVideoEncoder(VideoEncoder):
        def add_frame(self, image, delay_ms):
            if self._count == 1:
                raise RuntimeError("disk full")
            super().add_frame(image, delay_ms)

    out = tmp_path / "lapse.avi"
    encoder = FailingVideoEncoder(str(out), fps=5, fourcc="MJPG")
    with pytest.raises(ExportError):
        session.export(encoder)
    assert encoder._writer is None
    assert not out.exists()


def test_reload_while_playback_thread_renders(session):
    rendering = threading.Event()
    render = session.sequencer._render

    def slow_render(index):
        rendering.set()
        time.sleep(0.2)
        render(index)

    session.sequencer._render = slow_render
    session.play()
    player = threading.Thread(target=session.tick, args=(0,), daemon=True)
    player.start()
    assert rendering.wait(2)

    loader = threading.Thread(
        target=session.load, args=([make_frame(size=(50, 50))],), daemon=True
    )
    loader.start()
    player.join(3)
    loader.join(3)

    assert not player.is_alive()
    assert not loader.is_alive()
    assert session.frame_count == 1
    assert session.canvas.size == (50, 50)


def test_reset_while_playback_thread_renders(session):
    rendering = threading.Event()
    render = session.sequencer._render

    def slow_render(index):
        rendering.set()
        time.sleep(0.2)
        render(index)

    session.sequencer._render = slow_render
    session.play()
    player = threading.Thread(target=session.tick, args=(0,), daemon=True)
    player.start()
    assert rendering.wait(2)

    resetter = threading.Thread(target=session.reset, daemon=True)
    resetter.start()
    player.join(3)
    resetter.join(3)

    assert not player.is_alive()
    assert not resetter.is_alive()
    assert session.frame_count == 0
