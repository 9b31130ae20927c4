from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from indicator_analytics.services.periods import ComparisonRow
from indicator_analytics.utils.numeric import mean, safe_ratio, to_number


@dataclass(frozen=True)
class Totals:
    current_value: float | None
    comparison_value: float | None
    reference_value: float | None
    diff: float | None
    pct: float | None


def _aggregate(values: list[float], strategy: str) -> float | None:
    if not values:
        return None
    if strategy == "average":
        return mean(values)
    return sum(values)


def compute_totals(
    rows: Iterable[ComparisonRow],
    *,
    comparison_type: str | None = None,
    strategy: str = "sum",
) -> Totals | None:
    """Reduce ``rows`` to one summary line.

    Each column is aggregated from its own non-null values. The difference
    is taken against the reference total when present, else the comparison
    total. Scenario comparisons report ``current / target`` (share achieved)
    instead of a relative change.
    """
    rows = list(rows)
    if not rows:
        return None

    def column(name: str) -> list[float]:
        return [number for number in (to_number(getattr(row, name)) for row in rows) if number is not None]

    current_values = column("current_value")
    comparison_values = column("comparison_value")
    reference_values = column("reference_value")
    if not current_values and not comparison_values and not reference_values:
        return None

    current_total = _aggregate(current_values, strategy)
    comparison_total = _aggregate(comparison_values, strategy)
    reference_total = _aggregate(reference_values, strategy)

    basis = reference_total if reference_total is not None else comparison_total
    diff = current_total - basis if current_total is not None and basis is not None else None

    if reference_total is not None:
        pct = safe_ratio(diff, reference_total)
    elif comparison_total is not None and comparison_type == "scenario":
        pct = safe_ratio(current_total, comparison_total)
    else:
        pct = safe_ratio(diff, comparison_total)

    return Totals(
        current_value=current_total,
        comparison_value=comparison_total,
        reference_value=reference_total,
        diff=diff,
        pct=pct,
    )
