"""Numeric coercion for loosely typed provider payloads."""

import math


def to_number(value: object) -> float:
    """Coerce a provider value to a float, using 0 when it is not numeric."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, as label values are."""
    return math.floor(value + 0.5)
