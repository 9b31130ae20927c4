from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from indicator_analytics.services.periods import ComparisonRow
from indicator_analytics.services.totals import Totals


RowKind = Literal["observed", "total", "forecast"]

CURRENT_COLOR = "#2563eb"
COMPARISON_COLOR = "#10b981"
REFERENCE_COLOR = "#f97316"
TREND_COLOR = "#7c3aed"


@dataclass(frozen=True)
class ChartPoint:
    period: str
    current: float | None = None
    comparison: float | None = None
    reference: float | None = None
    trend: float | None = None
    full_period: str | None = None
    comparison_period: str | None = None
    is_forecast: bool = False


@dataclass(frozen=True)
class SeriesMeta:
    key: str
    name: str
    color: str
    renderer: str | None = None
    stroke_dasharray: str | None = None
    stroke_width: int | None = None
    dot: bool | None = None
    variant: str | None = None


@dataclass(frozen=True)
class TableRow:
    kind: RowKind
    period: str
    current_value: float | None
    comparison_value: float | None = None
    reference_value: float | None = None
    diff: float | None = None
    pct: float | None = None
    label: str | None = None


TREND_SERIES = SeriesMeta(
    key="trend",
    name="Tendencia",
    color=TREND_COLOR,
    renderer="line",
    stroke_dasharray="6 4",
    stroke_width=2,
    dot=False,
)


def build_chart_data(rows: list[ComparisonRow]) -> list[ChartPoint]:
    return [
        ChartPoint(
            period=row.label or row.period,
            current=row.current_value,
            comparison=row.comparison_value,
            reference=row.reference_value,
            full_period=row.period,
            comparison_period=row.comparison_period,
        )
        for row in rows
    ]


def build_forecast_points(rows: list[ComparisonRow]) -> list[ChartPoint]:
    return [
        ChartPoint(
            period=row.label or row.period,
            trend=row.current_value,
            full_period=row.period,
            is_forecast=True,
        )
        for row in rows
    ]


def build_chart_series(
    rows: list[ComparisonRow],
    *,
    current_name: str,
    comparison_name: str | None,
    reference_name: str | None = None,
) -> list[SeriesMeta]:
    series = [SeriesMeta(key="current", name=current_name, color=CURRENT_COLOR)]
    if comparison_name and any(row.comparison_value is not None for row in rows):
        series.append(SeriesMeta(key="comparison", name=comparison_name, color=COMPARISON_COLOR))
    if reference_name and any(row.reference_value is not None for row in rows):
        series.append(
            SeriesMeta(
                key="reference",
                name=reference_name,
                color=REFERENCE_COLOR,
                renderer="line",
                stroke_dasharray="6 4",
                dot=False,
                variant="reference",
            )
        )
    return series


def build_scenario_series(scenario_label: str) -> list[SeriesMeta]:
    return [
        SeriesMeta(key="current", name="Real", color=CURRENT_COLOR),
        SeriesMeta(key="comparison", name=scenario_label, color=REFERENCE_COLOR),
    ]


def overlay_forecast(chart_data: list[ChartPoint], forecast_points: list[ChartPoint]) -> list[ChartPoint]:
    """Historical points followed by forecast points.

    The last historical point also carries its observed value as ``trend`` so
    the projected line starts where the observed line ends.
    """
    if not forecast_points:
        return list(chart_data)
    points = list(chart_data)
    if points and points[-1].current is not None:
        points[-1] = replace(points[-1], trend=points[-1].current)
    return points + list(forecast_points)


def _table_row(kind: RowKind, row: ComparisonRow) -> TableRow:
    return TableRow(
        kind=kind,
        period=row.period,
        label=row.label,
        current_value=row.current_value,
        comparison_value=row.comparison_value,
        reference_value=row.reference_value,
        diff=row.diff,
        pct=row.pct,
    )


def build_table_rows(
    rows: list[ComparisonRow],
    totals: Totals | None = None,
    forecast_rows: list[ComparisonRow] | None = None,
) -> list[TableRow]:
    table = [_table_row("observed", row) for row in rows]
    if totals is not None:
        table.append(
            TableRow(
                kind="total",
                period="Total",
                current_value=totals.current_value,
                comparison_value=totals.comparison_value,
                reference_value=totals.reference_value,
                diff=totals.diff,
                pct=totals.pct,
            )
        )
    table.extend(_table_row("forecast", row) for row in forecast_rows or [])
    return table
