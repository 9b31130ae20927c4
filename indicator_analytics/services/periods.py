from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping

from indicator_analytics.services.indexing import ScenarioTargetIndex, Timeline, build_quarter_scenario_map
from indicator_analytics.services.records import HistoryRecord, TargetRecord
from indicator_analytics.utils.calendar import (
    QUARTER_LABELS,
    format_month,
    month_short_label,
    quarter_label,
    quarter_of,
)
from indicator_analytics.utils.numeric import safe_ratio


MonthValues = Mapping[int, float]


@dataclass(frozen=True)
class ComparisonRow:
    period: str
    current_value: float | None
    comparison_value: float | None = None
    reference_value: float | None = None
    diff: float | None = None
    pct: float | None = None
    label: str | None = None
    comparison_period: str | None = None
    is_forecast: bool = False


@dataclass(frozen=True)
class ScenarioQuarterRow:
    period: str
    quarter: int
    values: dict[str, float | None] = field(default_factory=dict)


def build_row(
    *,
    period: str,
    current_value: float | None,
    comparison_value: float | None = None,
    reference_value: float | None = None,
    label: str | None = None,
    comparison_period: str | None = None,
) -> ComparisonRow:
    basis = reference_value if reference_value is not None else comparison_value
    diff = current_value - basis if current_value is not None and basis is not None else None
    return ComparisonRow(
        period=period,
        label=label,
        comparison_period=comparison_period,
        current_value=current_value,
        comparison_value=comparison_value,
        reference_value=reference_value,
        diff=diff,
        pct=safe_ratio(diff, basis),
    )


def complete_quarters(latest_month: int) -> int:
    return max(0, min(latest_month, 12)) // 3


def _sum_present(values: list[float | None]) -> float | None:
    present = [value for value in values if value is not None]
    return sum(present) if present else None


def compute_monthly_rows(
    *,
    current_year: int,
    previous_year: int | None,
    latest_month: int,
    current_months: MonthValues,
    timeline: Timeline | None = None,
    reference_targets: ScenarioTargetIndex | None = None,
    reference_scenario: str | None = None,
) -> list[ComparisonRow]:
    rows: list[ComparisonRow] = []
    for month in range(1, latest_month + 1):
        current_value = current_months.get(month)
        if current_value is None:
            continue
        comparison_value = None
        if previous_year is not None and timeline is not None:
            entry = timeline.previous(current_year, month, years_back=current_year - previous_year)
            comparison_value = entry.value if entry is not None else None
        reference_value = None
        if reference_targets is not None and reference_scenario:
            reference_value = reference_targets.resolve(reference_scenario, current_year, month)
        rows.append(
            build_row(
                period=format_month(current_year, month),
                label=month_short_label(month),
                comparison_period=format_month(previous_year, month) if previous_year else None,
                current_value=current_value,
                comparison_value=comparison_value,
                reference_value=reference_value,
            )
        )
    return rows


def compute_quarter_rows(
    *,
    current_year: int,
    previous_year: int | None,
    latest_month: int,
    current_months: MonthValues,
    previous_months: MonthValues,
) -> list[ComparisonRow]:
    """Quarter sums for the current year against the same quarter a year before.

    Only quarters fully closed by ``latest_month`` whose three months all have
    a parsed value in the current year are emitted. A zero counts as present.
    """
    rows: list[ComparisonRow] = []
    for quarter in range(1, complete_quarters(latest_month) + 1):
        months = (quarter * 3 - 2, quarter * 3 - 1, quarter * 3)
        current_values = [current_months.get(month) for month in months]
        if any(value is None for value in current_values):
            continue
        comparison_value = _sum_present([previous_months.get(month) for month in months])
        rows.append(
            build_row(
                period=f"{quarter_label(quarter)} {current_year}",
                label=f"T{quarter}",
                comparison_period=f"{quarter_label(quarter)} {previous_year}" if previous_year else None,
                current_value=_sum_present(current_values),
                comparison_value=comparison_value,
            )
        )
    return rows


def compute_annual_rows(
    *,
    current_year: int,
    previous_year: int | None,
    latest_month: int,
    current_months: MonthValues,
    previous_months: MonthValues,
) -> list[ComparisonRow]:
    months = range(1, latest_month + 1)
    current_value = _sum_present([current_months.get(month) for month in months])
    if current_value is None:
        return []
    return [
        build_row(
            period=f"Año {current_year}",
            label=str(current_year),
            comparison_period=f"Año {previous_year}" if previous_year else None,
            current_value=current_value,
            comparison_value=_sum_present([previous_months.get(month) for month in months]),
        )
    ]


def compute_scenario_rows(
    *,
    current_year: int,
    latest_month: int,
    current_months: MonthValues,
    targets: ScenarioTargetIndex,
    scenario: str | None,
) -> list[ComparisonRow]:
    """Real values against a scenario trajectory; the target is the 100% basis."""
    rows: list[ComparisonRow] = []
    for month in range(1, latest_month + 1):
        current_value = current_months.get(month)
        if current_value is None:
            continue
        rows.append(
            build_row(
                period=format_month(current_year, month),
                label=month_short_label(month),
                current_value=current_value,
                comparison_value=targets.resolve(scenario, current_year, month),
            )
        )
    return rows


def compute_meta_quarter_rows(
    *,
    history: list[HistoryRecord],
    targets: list[TargetRecord],
    scenario: str | None,
    order_columns: Callable[[list[str]], list[str]] | None = None,
) -> tuple[list[str], list[ScenarioQuarterRow]]:
    """Quarter rows for indicators whose history is itself a planned trajectory.

    Returns the scenario columns and one row per quarter, each row exposing
    every scenario side by side instead of a current/comparison split.
    """
    if not history:
        return [], []
    meta_year = max(row.year for row in history)
    scenario_map = build_quarter_scenario_map(targets, meta_year)

    if scenario_map:
        columns = order_columns(list(scenario_map)) if order_columns is not None else list(scenario_map)
        presence = [
            any(scenario_map.get(code, [None] * 4)[position] is not None for code in columns)
            for position in range(len(QUARTER_LABELS))
        ]
        if not any(presence):
            return columns, []
        last_position = max(position for position, flag in enumerate(presence) if flag)
        rows = [
            ScenarioQuarterRow(
                period=quarter_label(position + 1),
                quarter=position + 1,
                values={code: scenario_map.get(code, [None] * 4)[position] for code in columns},
            )
            for position in range(last_position + 1)
        ]
        return columns, rows

    column = scenario or "META"
    by_quarter: dict[int, float] = {}
    for row in history:
        if row.year != meta_year or row.value is None or not 1 <= row.month <= 12:
            continue
        by_quarter[quarter_of(row.month)] = row.value
    rows = [
        ScenarioQuarterRow(period=quarter_label(quarter), quarter=quarter, values={column: value})
        for quarter, value in sorted(by_quarter.items())
    ]
    return [column], rows
