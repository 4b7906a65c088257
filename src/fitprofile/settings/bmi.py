"""Body-mass index derived from height and weight."""

import math


def _as_positive_number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def compute_bmi(height_cm: object, weight_kg: object) -> float | None:
    """Return weight / (height in metres)² rounded to one decimal.

    Accepts numbers or numeric strings (raw form input). Returns None when
    either value is missing, non-numeric or not positive.
    """
    height = _as_positive_number(height_cm)
    weight = _as_positive_number(weight_kg)
    if height is None or weight is None:
        return None
    height_m = height / 100
    return round(weight / (height_m * height_m), 1)
