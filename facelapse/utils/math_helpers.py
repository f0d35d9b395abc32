import math


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value between min_val and max_val."""
    return max(min_val, min(max_val, value))


def floor_to_step(value: float, step: float) -> float:
    """Truncate value down to a multiple of step (slider granularity)."""
    # Tolerance absorbs representation error such as 0.29 / 0.01 = 28.999...
    units = math.floor(value / step + 1e-9)
    return round(units * step, 10)
