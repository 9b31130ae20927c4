from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Iterable


TRUE_STRINGS = frozenset({"true", "t", "1", "yes", "y", "si", "sí"})


def to_number(value: Any) -> float | None:
    """Coerce ``value`` to a finite float, or ``None`` when it is not a number.

    Strings are stripped and parsed; empty strings, booleans, NaN and
    infinities all resolve to ``None`` so they propagate as "no observation"
    instead of poisoning sums.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (int, float, Decimal)):
        return None
    try:
        numeric = float(value)
    except (OverflowError, ValueError):
        return None
    return numeric if math.isfinite(numeric) else None


def to_flag(value: Any) -> bool:
    """Read a boolean flag sent as a bool, a number or text (``"false"``, ``"0"``, ``"si"``)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    number = to_number(value)
    return number is not None and number != 0


def to_int(value: Any) -> int | None:
    numeric = to_number(value)
    if numeric is None or not numeric.is_integer():
        return None
    return int(numeric)


def safe_ratio(numerator: float | None, denominator: float | None) -> float | None:
    if numerator is None or denominator is None or denominator == 0:
        return None
    result = numerator / denominator
    return result if math.isfinite(result) else None


def finite_values(values: Iterable[Any]) -> list[float]:
    return [number for number in (to_number(value) for value in values) if number is not None]


def mean(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)
