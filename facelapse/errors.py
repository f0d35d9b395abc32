"""Exception taxonomy for alignment, auto-fit, playback and export."""


class TimelapseError(Exception):
    """Base exception for facelapse operations."""


class InvalidLandmarks(TimelapseError):
    """Raised when an eye point cluster is empty or holds non-finite values."""

    def __init__(self, message: str = "Eye landmark cluster is empty"):
        super().__init__(message)


class DegenerateGeometry(TimelapseError):
    """Raised when the eye distance is too small to derive a scale."""

    def __init__(self, eye_distance: float):
        super().__init__(f"Eye distance {eye_distance!r} is below the alignment threshold")
        self.eye_distance = eye_distance


class InfeasibleFit(TimelapseError):
    """Raised when auto-fit cannot produce a positive zoom bound."""

    def __init__(self, bound: float, frame_index: int = None):
        message = f"No usable zoom bound (got {bound!r})"
        if frame_index is not None:
            message += f" for frame {frame_index}"
        super().__init__(message)
        self.bound = bound
        self.frame_index = frame_index


class NoFramesError(TimelapseError):
    """Raised when ingestion yields no usable frame."""

    def __init__(self, message: str = "No valid images found"):
        super().__init__(message)


class SessionBusyError(TimelapseError):
    """Raised when the canvas is held by an export."""

    def __init__(self, message: str = "Canvas is busy exporting"):
        super().__init__(message)


class ExportError(TimelapseError):
    """Raised when an encoder fails to produce output."""

    def __init__(self, path: str, reason: str = None):
        message = f"Failed to export: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path
