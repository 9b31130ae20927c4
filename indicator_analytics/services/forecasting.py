from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

from indicator_analytics.services.assemblers import TREND_SERIES, ChartPoint, SeriesMeta, build_forecast_points
from indicator_analytics.services.periods import ComparisonRow
from indicator_analytics.services.records import HistoryRecord
from indicator_analytics.services.totals import Totals, compute_totals
from indicator_analytics.utils.calendar import add_months, format_month, format_trend_label
from indicator_analytics.utils.numeric import finite_values


ForecastMethod = Literal["holt_winters", "holt_linear"]

FORECAST_TYPES = {"monthly", "scenario"}
MIN_SMOOTHING_POINTS = 3


@dataclass(frozen=True)
class ForecastOptions:
    periods: int = 6
    min_points: int = 4
    season_length: int = 12
    linear_alpha: float = 0.5
    linear_beta: float = 0.3
    alpha: float = 0.4
    beta: float = 0.3
    gamma: float = 0.3


@dataclass(frozen=True)
class SeriesForecast:
    method: ForecastMethod | None
    values: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class ForecastResult:
    method: ForecastMethod
    rows: list[ComparisonRow]
    totals: Totals | None
    chart_points: list[ChartPoint]
    series: SeriesMeta


def forecast_holt_linear(series: list[float], steps: int, alpha: float = 0.5, beta: float = 0.3) -> list[float]:
    if not series or steps <= 0:
        return []

    level = series[0] if math.isfinite(series[0]) else 0.0
    trend = series[1] - series[0] if len(series) > 1 else 0.0
    if not math.isfinite(trend):
        trend = 0.0
    fallback = series[-1] if math.isfinite(series[-1]) else level

    for value in series[1:]:
        if not math.isfinite(value):
            continue
        previous_level = level
        level = alpha * value + (1 - alpha) * (level + trend)
        trend = beta * (level - previous_level) + (1 - beta) * trend

    predictions: list[float] = []
    for step in range(1, steps + 1):
        value = level + step * trend
        predictions.append(value if math.isfinite(value) else fallback)
    return predictions


def effective_season_length(length: int, season_length: int) -> int | None:
    """Season length usable for ``length`` points, or ``None`` when too short.

    The requested length is capped to half the series so at least two full
    seasons are available for initialization.
    """
    capped = min(season_length, length // 2)
    if capped < 2 or length // capped < 2:
        return None
    return capped


def forecast_holt_winters(
    series: list[float],
    steps: int,
    *,
    alpha: float = 0.4,
    beta: float = 0.3,
    gamma: float = 0.3,
    season_length: int = 12,
) -> list[float]:
    """Additive Holt-Winters projection for ``steps`` periods.

    Falls back to Holt linear smoothing (with the same ``alpha``/``beta``)
    when the series cannot hold two full seasons.
    """
    if len(series) < 2 or steps <= 0:
        return []

    length = effective_season_length(len(series), season_length)
    if length is None:
        return forecast_holt_linear(series, steps, alpha, beta)
    season_count = len(series) // length

    season_averages = [
        sum(series[index * length : (index + 1) * length]) / length for index in range(season_count)
    ]
    seasonals = [
        sum(series[index * length + position] - season_averages[index] for index in range(season_count))
        / season_count
        for position in range(length)
    ]

    level = season_averages[0] if math.isfinite(season_averages[0]) else series[0]
    trend_sum = 0.0
    for position in range(length):
        first = series[position]
        second = series[position + length]
        if math.isfinite(first) and math.isfinite(second):
            trend_sum += (second - first) / length
    trend = trend_sum / length
    if not math.isfinite(trend):
        trend = 0.0
    fallback = series[-1] if math.isfinite(series[-1]) else level

    for index, value in enumerate(series):
        if not math.isfinite(value):
            continue
        position = index % length
        previous_level = level
        seasonal = seasonals[position]
        level = alpha * (value - seasonal) + (1 - alpha) * (level + trend)
        trend = beta * (level - previous_level) + (1 - beta) * trend
        seasonals[position] = gamma * (value - level) + (1 - gamma) * seasonal

    predictions: list[float] = []
    for step in range(1, steps + 1):
        value = level + step * trend + seasonals[(len(series) + step - 1) % length]
        predictions.append(value if math.isfinite(value) else fallback)
    return predictions


def forecast(
    values: Iterable[Any],
    steps: int,
    options: ForecastOptions | None = None,
    *,
    method: Literal["auto", "linear"] = "auto",
) -> SeriesForecast:
    """Project ``steps`` values from a raw series, dropping unparsable points.

    Fewer than three usable points, or ``steps <= 0``, yields an empty
    forecast with no method.
    """
    options = options or ForecastOptions()
    series = finite_values(values)
    if len(series) < MIN_SMOOTHING_POINTS or steps <= 0:
        return SeriesForecast(method=None)
    if method == "linear":
        return SeriesForecast(
            method="holt_linear",
            values=forecast_holt_linear(series, steps, options.linear_alpha, options.linear_beta),
        )
    predictions = forecast_holt_winters(
        series,
        steps,
        alpha=options.alpha,
        beta=options.beta,
        gamma=options.gamma,
        season_length=options.season_length,
    )
    seasonal = effective_season_length(len(series), options.season_length) is not None
    return SeriesForecast(method="holt_winters" if seasonal else "holt_linear", values=predictions)


def compute_forecast(
    *,
    comparison_type: str,
    history: list[HistoryRecord],
    periods: int,
    totals_strategy: str = "sum",
    options: ForecastOptions | None = None,
    reference_year: int | None = None,
) -> ForecastResult | None:
    """Forecast rows anchored after the last record of a sorted ``history``."""
    if comparison_type not in FORECAST_TYPES or not history:
        return None
    options = options or ForecastOptions()
    series = [row.value for row in history if row.value is not None]
    if len(series) < options.min_points:
        return None

    projection = forecast(series, periods, options)
    if projection.method is None or not projection.values:
        return None

    latest = history[-1]
    base_year = latest.year or reference_year
    if base_year is None:
        return None
    base_month = latest.month or 12

    rows: list[ComparisonRow] = []
    for step, value in enumerate(projection.values, start=1):
        year, month = add_months(base_year, base_month, step)
        rows.append(
            ComparisonRow(
                period=format_month(year, month),
                label=format_trend_label(year, month),
                current_value=value,
                is_forecast=True,
            )
        )

    return ForecastResult(
        method=projection.method,
        rows=rows,
        totals=compute_totals(rows, comparison_type=comparison_type, strategy=totals_strategy),
        chart_points=build_forecast_points(rows),
        series=TREND_SERIES,
    )
