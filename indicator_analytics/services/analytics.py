from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from indicator_analytics.services.assemblers import (
    ChartPoint,
    SeriesMeta,
    TableRow,
    build_chart_data,
    build_chart_series,
    build_scenario_series,
    build_table_rows,
    overlay_forecast,
)
from indicator_analytics.services.forecasting import ForecastOptions, ForecastResult, compute_forecast
from indicator_analytics.services.indexing import (
    ScenarioTargetIndex,
    Timeline,
    YearMonthIndex,
    build_quarter_scenario_map,
    build_timeline,
    build_year_month_index,
    normalize_scenario_key,
)
from indicator_analytics.services.indicators import (
    IndicatorProfile,
    TotalsStrategy,
    format_scenario_label,
    meta_scenario_label,
    order_meta_columns,
    rules_for,
)
from indicator_analytics.services.periods import (
    ComparisonRow,
    ScenarioQuarterRow,
    compute_annual_rows,
    compute_meta_quarter_rows,
    compute_monthly_rows,
    compute_quarter_rows,
    compute_scenario_rows,
)
from indicator_analytics.services.records import (
    HistoryRecord,
    TargetRecord,
    coerce_history,
    coerce_targets,
    history_from_targets,
    sort_chronological,
)
from indicator_analytics.services.totals import Totals, compute_totals
from indicator_analytics.utils.calendar import quarter_label
from indicator_analytics.utils.numeric import safe_ratio


logger = logging.getLogger("indicator_analytics.engine")

COMPARISON_TYPES: tuple[str, ...] = ("monthly", "quarterly", "annual", "scenario")


@dataclass(frozen=True)
class AnalyticsOptions:
    scenario: str | None = None
    totals_strategy: TotalsStrategy = "sum"
    diff_scenario: str | None = None
    periods: int = 6
    current_year: int | None = None
    indicator: IndicatorProfile | None = None
    forecast: ForecastOptions = field(default_factory=ForecastOptions)


@dataclass(frozen=True)
class Summary:
    title: str
    current_label: str
    comparison_label: str
    current_value: float | None
    comparison_value: float | None
    diff: float | None
    pct: float | None
    reference_label: str | None = None
    reference_value: float | None = None
    previous_label: str | None = None
    previous_value: float | None = None


@dataclass(frozen=True)
class AnalyticsResult:
    type: str
    current_year: int
    previous_year: int | None
    latest_month: int
    rows: list[ComparisonRow]
    totals: Totals | None
    totals_strategy: str
    forecast: ForecastResult | None
    comparison_label: str
    chart_data: list[ChartPoint]
    chart_series: list[SeriesMeta]
    summary: Summary | None = None
    scenario: str | None = None
    reference_label: str | None = None
    meta_only: bool = False
    scenario_columns: list[str] = field(default_factory=list)
    scenario_rows: list[ScenarioQuarterRow] = field(default_factory=list)

    @property
    def table_rows(self) -> list[TableRow]:
        forecast_rows = self.forecast.rows if self.forecast is not None else None
        return build_table_rows(self.rows, self.totals, forecast_rows)

    @property
    def chart_overlay(self) -> list[ChartPoint]:
        if self.forecast is None:
            return list(self.chart_data)
        return overlay_forecast(self.chart_data, self.forecast.chart_points)


class IndicatorDataset:
    """One indicator's history and targets, with indices built on first use.

    Build one dataset per request and pass it to every comparison computed in
    that request so the indices are scanned once.
    """

    def __init__(self, history: Any, targets: Any = None, *, fallback_to_targets: bool = False) -> None:
        self.targets: list[TargetRecord] = coerce_targets(targets)
        records = coerce_history(history)
        if not records and fallback_to_targets:
            records = history_from_targets(self.targets)
        self.history: list[HistoryRecord] = sort_chronological(records)

    @property
    def latest_record(self) -> HistoryRecord | None:
        return self.history[-1] if self.history else None

    @cached_property
    def year_month_index(self) -> YearMonthIndex:
        return build_year_month_index(self.history)

    @cached_property
    def timeline(self) -> Timeline:
        return build_timeline(self.history)

    @cached_property
    def target_index(self) -> ScenarioTargetIndex:
        return ScenarioTargetIndex(self.targets)

    @cached_property
    def meta_only(self) -> bool:
        return bool(self.history) and all(row.is_meta for row in self.history)

    def months_for(self, year: int | None) -> dict[int, float]:
        if year is None:
            return {}
        return self.year_month_index.get(year, {})

    def resolve_period(self, current_year: int | None = None) -> tuple[int, int] | None:
        """Return ``(year, latest_month)`` for the analysed year.

        Defaults to the year of the latest record; a month of ``0`` (annual
        record) counts as a full year.
        """
        latest = self.latest_record
        if latest is None:
            return None
        if current_year is None or current_year == latest.year:
            return latest.year, latest.month if 1 <= latest.month <= 12 else 12
        months = [row.month for row in self.history if row.year == current_year]
        if not months:
            return None
        in_range = [month for month in months if 1 <= month <= 12]
        return current_year, max(in_range) if in_range else 12


def compute_analytics(
    comparison_type: str,
    dataset: IndicatorDataset,
    options: AnalyticsOptions | None = None,
) -> AnalyticsResult | None:
    options = options or AnalyticsOptions()
    if comparison_type not in COMPARISON_TYPES:
        logger.debug("Unsupported comparison type %r.", comparison_type)
        return None

    period = dataset.resolve_period(options.current_year)
    if period is None:
        logger.debug("No history available for %s comparison.", comparison_type)
        return None
    current_year, latest_month = period
    previous_year = current_year - 1

    rules = rules_for(options.indicator)
    scenario = options.scenario
    if comparison_type == "scenario" and rules.scenario_override:
        scenario = rules.scenario_override
    totals_strategy = rules.totals_strategy or options.totals_strategy
    diff_scenario = rules.reference_scenario or options.diff_scenario

    if comparison_type == "scenario" and dataset.meta_only:
        return _meta_only_result(dataset, options, scenario, current_year, latest_month, totals_strategy)

    current_months = dataset.months_for(current_year)
    if not current_months:
        logger.debug("No observed values for %s in %s.", current_year, comparison_type)
        return None

    def forecast_for(strategy: str) -> ForecastResult | None:
        result = compute_forecast(
            comparison_type=comparison_type,
            history=dataset.history,
            periods=options.periods,
            totals_strategy=strategy,
            options=options.forecast,
            reference_year=current_year,
        )
        if result is None and comparison_type in ("monthly", "scenario"):
            logger.debug("Forecast skipped: not enough observations.")
        return result

    if comparison_type == "scenario":
        rows = compute_scenario_rows(
            current_year=current_year,
            latest_month=latest_month,
            current_months=current_months,
            targets=dataset.target_index,
            scenario=scenario,
        )
        label = format_scenario_label(scenario)
        return AnalyticsResult(
            type=comparison_type,
            scenario=scenario,
            current_year=current_year,
            previous_year=previous_year,
            latest_month=latest_month,
            rows=rows,
            totals=compute_totals(rows, comparison_type=comparison_type, strategy=totals_strategy),
            totals_strategy=totals_strategy,
            forecast=forecast_for(totals_strategy),
            comparison_label=label,
            chart_data=build_chart_data(rows),
            chart_series=build_scenario_series(label),
            summary=_scenario_summary(rows, label),
        )

    has_reference = bool(diff_scenario) and diff_scenario in dataset.target_index
    reference_label = format_scenario_label(diff_scenario) if diff_scenario else None

    if comparison_type == "monthly" and has_reference and not rules.compare_prior_year:
        rows = compute_monthly_rows(
            current_year=current_year,
            previous_year=None,
            latest_month=latest_month,
            current_months=current_months,
            reference_targets=dataset.target_index,
            reference_scenario=diff_scenario,
        )
        return AnalyticsResult(
            type=comparison_type,
            scenario=diff_scenario,
            current_year=current_year,
            previous_year=previous_year,
            latest_month=latest_month,
            rows=rows,
            totals=compute_totals(rows, comparison_type="scenario", strategy=totals_strategy),
            totals_strategy=totals_strategy,
            forecast=forecast_for(totals_strategy),
            comparison_label=reference_label,
            reference_label=reference_label,
            chart_data=build_chart_data(rows),
            chart_series=build_chart_series(
                rows, current_name="Real", comparison_name=None, reference_name=reference_label
            ),
            summary=_monthly_summary(rows, current_year, reference_label, str(previous_year)),
        )

    monthly_rows = compute_monthly_rows(
        current_year=current_year,
        previous_year=previous_year,
        latest_month=latest_month,
        current_months=current_months,
        timeline=dataset.timeline,
        reference_targets=dataset.target_index if has_reference else None,
        reference_scenario=diff_scenario if has_reference else None,
    )
    if not monthly_rows:
        return None

    base = dict(
        type=comparison_type,
        current_year=current_year,
        previous_year=previous_year,
        latest_month=latest_month,
        totals_strategy=totals_strategy,
        comparison_label=str(previous_year),
    )

    if comparison_type == "monthly":
        effective_reference_label = (
            reference_label if any(row.reference_value is not None for row in monthly_rows) else None
        )
        return AnalyticsResult(
            rows=monthly_rows,
            chart_data=build_chart_data(monthly_rows),
            chart_series=build_chart_series(
                monthly_rows,
                current_name=str(current_year),
                comparison_name=str(previous_year),
                reference_name=reference_label,
            ),
            totals=compute_totals(monthly_rows, comparison_type=comparison_type, strategy=totals_strategy),
            forecast=forecast_for(totals_strategy),
            reference_label=effective_reference_label,
            summary=_monthly_summary(monthly_rows, current_year, effective_reference_label, str(previous_year)),
            **base,
        )

    previous_months = dataset.months_for(previous_year)
    if comparison_type == "quarterly":
        rows = compute_quarter_rows(
            current_year=current_year,
            previous_year=previous_year,
            latest_month=latest_month,
            current_months=current_months,
            previous_months=previous_months,
        )
        title = f"Comparación Trimestral {current_year} vs {previous_year}"
        fallback_label = "Mismo trimestre año anterior"
    else:
        rows = compute_annual_rows(
            current_year=current_year,
            previous_year=previous_year,
            latest_month=latest_month,
            current_months=current_months,
            previous_months=previous_months,
        )
        title = f"Comparación Anual Acumulada {current_year} vs {previous_year}"
        fallback_label = "Año anterior"
    if not rows:
        return None

    return AnalyticsResult(
        rows=rows,
        totals=compute_totals(rows, comparison_type=comparison_type, strategy=totals_strategy),
        forecast=None,
        chart_data=build_chart_data(rows),
        chart_series=build_chart_series(rows, current_name=str(current_year), comparison_name=str(previous_year)),
        summary=_period_summary(rows[-1], title, fallback_label),
        **base,
    )


def aggregate(
    comparison_type: str,
    history: Any,
    targets: Any = None,
    options: AnalyticsOptions | None = None,
) -> AnalyticsResult | None:
    return compute_analytics(comparison_type, IndicatorDataset(history, targets), options)


def _monthly_summary(
    rows: list[ComparisonRow],
    current_year: int,
    reference_label: str | None,
    comparison_series_label: str,
) -> Summary | None:
    if not rows:
        return None
    last = rows[-1]
    reference_value = last.reference_value if reference_label else None
    summary_reference_label = (reference_label or "Meta") if reference_value is not None else None
    return Summary(
        title=f"Variación mensual {current_year}",
        current_label=last.period,
        comparison_label=summary_reference_label or last.comparison_period or "Mismo mes año anterior",
        current_value=last.current_value,
        comparison_value=reference_value if reference_value is not None else last.comparison_value,
        diff=last.diff,
        pct=last.pct,
        reference_label=summary_reference_label,
        reference_value=reference_value,
        previous_label=last.comparison_period or comparison_series_label,
        previous_value=last.comparison_value,
    )


def _period_summary(row: ComparisonRow, title: str, fallback_label: str) -> Summary:
    return Summary(
        title=title,
        current_label=row.period,
        comparison_label=row.comparison_period or fallback_label,
        current_value=row.current_value,
        comparison_value=row.comparison_value,
        diff=row.diff,
        pct=row.pct,
    )


def _scenario_summary(rows: list[ComparisonRow], label: str) -> Summary | None:
    if not rows:
        return None
    last = rows[-1]
    return Summary(
        title=f"Comparativo Real vs Meta – {label.replace('Meta ', '', 1)}",
        current_label=last.period,
        comparison_label=label,
        current_value=last.current_value,
        comparison_value=last.comparison_value,
        diff=last.diff,
        pct=last.pct,
    )


def _meta_only_result(
    dataset: IndicatorDataset,
    options: AnalyticsOptions,
    scenario: str | None,
    current_year: int,
    latest_month: int,
    totals_strategy: str,
) -> AnalyticsResult:
    profile = options.indicator
    scenario_key = normalize_scenario_key(scenario) or None
    columns, rows = compute_meta_quarter_rows(
        history=dataset.history,
        targets=dataset.targets,
        scenario=scenario_key,
        order_columns=order_meta_columns,
    )
    meta_year = max(row.year for row in dataset.history)
    quarter_index = max(0, min(3, math.ceil(latest_month / 3) - 1))
    period_label = f"{quarter_label(quarter_index + 1)} {meta_year}"
    scenario_map = build_quarter_scenario_map(dataset.targets, meta_year)

    if scenario_map:
        program_label = meta_scenario_label(profile, "MEDIO")
        achieved_label = meta_scenario_label(profile, "ALTO")
        program_value = scenario_map.get("MEDIO", [None] * 4)[quarter_index]
        achieved_value = scenario_map.get("ALTO", [None] * 4)[quarter_index]
        diff = (
            achieved_value - program_value
            if program_value is not None and achieved_value is not None
            else None
        )
        summary = Summary(
            title=f"{program_label} vs {achieved_label} ({period_label})",
            current_label=program_label,
            comparison_label=achieved_label,
            current_value=program_value,
            comparison_value=achieved_value,
            diff=diff,
            pct=safe_ratio(diff, program_value),
        )
    else:
        label = meta_scenario_label(profile, scenario_key) if scenario_key else "Meta Programada"
        latest = dataset.latest_record
        summary = Summary(
            title=f"{label} ({period_label})",
            current_label=label,
            comparison_label="—",
            current_value=latest.value if latest is not None else None,
            comparison_value=None,
            diff=None,
            pct=None,
        )

    return AnalyticsResult(
        type="scenario",
        scenario=scenario_key,
        current_year=current_year,
        previous_year=current_year - 1,
        latest_month=latest_month,
        rows=[],
        totals=None,
        totals_strategy=totals_strategy,
        forecast=None,
        comparison_label=format_scenario_label(scenario_key),
        chart_data=[],
        chart_series=[],
        summary=summary,
        meta_only=True,
        scenario_columns=columns,
        scenario_rows=rows,
    )
