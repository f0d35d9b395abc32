#!/usr/bin/env python3
"""Face time-lapse - command line entry point."""

import argparse
import logging
import signal
import sys
from pathlib import Path

from facelapse.config import load_config
from facelapse.errors import InfeasibleFit, TimelapseError
from facelapse.session import TimelapseSession

log = logging.getLogger("facelapse")

PREVIEW_WINDOW = "facelapse"


def build_detector(args, config):
    if args.landmarks:
        from facelapse.detection.landmark_file import LandmarkFileDetector
        return LandmarkFileDetector.from_file(args.landmarks)
    if args.no_align:
        return None
    from facelapse.detection.eye_detector import HaarEyeDetector
    return HaarEyeDetector.from_config(config.detection)


def expand_inputs(inputs: list) -> list:
    """Directories expand to their files in name order."""
    paths = []
    for item in inputs:
        p = Path(item)
        if p.is_dir():
            paths.extend(sorted(c for c in p.iterdir() if c.is_file()))
        else:
            paths.append(p)
    return paths


def write_frames(session: TimelapseSession, out_dir: str):
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    for i in range(session.frame_count):
        path = out / f"frame_{i:04d}.png"
        session.render(i).save(path)
    log.info(f"Saved {session.frame_count} frames to {out}/")


def preview(session: TimelapseSession):
    """Loop the timelapse in an OpenCV window until Esc/q or SIGTERM."""
    import cv2
    import numpy as np

    def show_and_wait(seconds: float):
        img = session.canvas.image
        cv2.imshow(PREVIEW_WINDOW, cv2.cvtColor(np.asarray(img), cv2.COLOR_RGB2BGR))
        key = cv2.waitKey(max(1, int(seconds * 1000))) & 0xFF
        if key in (27, ord("q")):
            session.pause()

    signal.signal(signal.SIGTERM, lambda *_: session.pause())
    session.play()
    try:
        session.sequencer.run(sleep=show_and_wait)
    except KeyboardInterrupt:
        log.info("Interrupted")
    finally:
        session.pause()
        cv2.destroyAllWindows()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Align face photos into a time-lapse")
    parser.add_argument("inputs", nargs="+", help="Image files or directories, in order")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--landmarks", help="YAML file of precomputed eye landmarks")
    parser.add_argument("--fps", type=int, help="Playback/export frame rate (1-60)")
    parser.add_argument("--zoom", type=float, help="Eye distance as a fraction of width (0.1-1.0)")
    parser.add_argument("--no-align", action="store_true", help="Center images without eye alignment")
    parser.add_argument("--auto-fit", action="store_true", help="Pick the largest zoom that clips no frame")
    parser.add_argument("--gif", help="Write an animated GIF")
    parser.add_argument("--video", help="Write an MP4 video")
    parser.add_argument("--frames-dir", help="Write each aligned frame as PNG")
    parser.add_argument("--preview", action="store_true", help="Play in a window")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    session = TimelapseSession(config)
    try:
        session.load_paths(expand_inputs(args.inputs), build_detector(args, config))
    except TimelapseError as e:
        log.error(str(e))
        return 1

    if args.fps is not None:
        session.set_fps(args.fps)
    if args.zoom is not None:
        session.set_zoom(args.zoom)
    session.set_align_eyes(not args.no_align)

    if args.auto_fit:
        try:
            session.compute_auto_fit_zoom()
        except InfeasibleFit:
            log.info(f"Keeping zoom {session.zoom:.2f}")

    log.info(f"Settings: {session.settings}")

    try:
        if args.frames_dir:
            write_frames(session, args.frames_dir)
        if args.gif:
            from facelapse.export.gif_encoder import GifEncoder
            session.export(GifEncoder(args.gif, loop=config.export.gif_loop))
        if args.video:
            from facelapse.export.video_encoder import VideoEncoder
            session.export(VideoEncoder(args.video, fps=session.fps,
                                        fourcc=config.export.video_fourcc))
    except TimelapseError as e:
        log.error(str(e))
        return 1

    if args.preview:
        preview(session)

    return 0


if __name__ == "__main__":
    sys.exit(main())
