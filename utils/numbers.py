import math


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def round_half_up(value: float) -> int:
    # halves go up (2.5 -> 3); round() would give 2
    return int(math.floor(value + 0.5))


def as_int(value, *, default: int) -> int:
    if isinstance(value, bool):
        return int(default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return int(default)
    if math.isnan(number) or math.isinf(number):
        return int(default)
    return int(number)


def as_float(value, *, default: float) -> float:
    if isinstance(value, bool):
        return float(default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return float(default)
    if not math.isfinite(number):
        return float(default)
    return number
