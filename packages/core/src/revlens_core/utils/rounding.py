import math


def round_half_up(value: float, places: int) -> float:
    """Round to ``places`` decimals with halves going toward +infinity.

    Computed as ``floor(value * 10**places + 0.5) / 10**places``, so 0.125
    becomes 0.13 and -2.5 becomes -2.0, unlike the built-in round().
    """
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor
