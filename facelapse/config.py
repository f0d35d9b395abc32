from dataclasses import dataclass, field
from pathlib import Path
import yaml

# Upper zoom bound accepted by ViewportConfig
ZOOM_LIMIT = 1.0


@dataclass
class PlaybackConfig:
    fps: int = 10
    fps_min: int = 1
    fps_max: int = 60


@dataclass
class ViewportSettings:
    zoom: float = 0.25
    zoom_min: float = 0.10
    zoom_max: float = 1.0
    zoom_step: float = 0.01
    # Eyes land at 50% width, 40% height of the canvas
    target_x_ratio: float = 0.5
    target_y_ratio: float = 0.4
    align_eyes: bool = True
    background: tuple = (0, 0, 0)


@dataclass
class AutoFitConfig:
    margin: float = 0.95


@dataclass
class DetectionConfig:
    scale_factor: float = 1.1
    min_neighbors: int = 5
    min_face_size: tuple = (60, 60)
    min_eye_size: tuple = (15, 15)


@dataclass
class ExportConfig:
    gif_loop: int = 0
    video_fourcc: str = "mp4v"


@dataclass
class Config:
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    viewport: ViewportSettings = field(default_factory=ViewportSettings)
    autofit: AutoFitConfig = field(default_factory=AutoFitConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_level: str = "INFO"


def load_config(path: str = "config.yaml") -> Config:
    """Load config from YAML file, falling back to defaults for missing keys."""
    config = Config()
    config_path = Path(path)

    if not config_path.exists():
        return config

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if "playback" in data:
        p = data["playback"]
        config.playback = PlaybackConfig(
            fps=int(p.get("fps", config.playback.fps)),
            fps_min=int(p.get("fps_min", config.playback.fps_min)),
            fps_max=int(p.get("fps_max", config.playback.fps_max)),
        )

    if "viewport" in data:
        v = data["viewport"]
        zoom_step = float(v.get("zoom_step", config.viewport.zoom_step))
        zoom_max = min(float(v.get("zoom_max", config.viewport.zoom_max)), ZOOM_LIMIT)
        zoom_min = min(max(float(v.get("zoom_min", config.viewport.zoom_min)), zoom_step), zoom_max)
        config.viewport = ViewportSettings(
            zoom=float(v.get("zoom", config.viewport.zoom)),
            zoom_min=zoom_min,
            zoom_max=zoom_max,
            zoom_step=zoom_step,
            target_x_ratio=float(v.get("target_x_ratio", config.viewport.target_x_ratio)),
            target_y_ratio=float(v.get("target_y_ratio", config.viewport.target_y_ratio)),
            align_eyes=bool(v.get("align_eyes", config.viewport.align_eyes)),
            background=tuple(v.get("background", list(config.viewport.background))),
        )

    if "autofit" in data:
        config.autofit = AutoFitConfig(
            margin=float(data["autofit"].get("margin", config.autofit.margin)),
        )

    if "detection" in data:
        d = data["detection"]
        config.detection = DetectionConfig(
            scale_factor=d.get("scale_factor", config.detection.scale_factor),
            min_neighbors=d.get("min_neighbors", config.detection.min_neighbors),
            min_face_size=tuple(d.get("min_face_size", list(config.detection.min_face_size))),
            min_eye_size=tuple(d.get("min_eye_size", list(config.detection.min_eye_size))),
        )

    if "export" in data:
        e = data["export"]
        config.export = ExportConfig(
            gif_loop=e.get("gif_loop", config.export.gif_loop),
            video_fourcc=e.get("video_fourcc", config.export.video_fourcc),
        )

    if "logging" in data:
        config.log_level = data["logging"].get("level", config.log_level)

    return config
