import math


def round_half_up(value: float, digits: int = 0):
    """Round to `digits` places with exact halves going up (92.5 -> 93).

    Returns an int when `digits` is 0.
    """
    if digits == 0:
        return math.floor(value + 0.5)
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
