from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from indicator_analytics.schemas.common import ORMModel


ComparisonType = Literal["monthly", "quarterly", "annual", "scenario"]
TotalsStrategy = Literal["sum", "average"]
RawNumber = int | float | str | None


class HistoryRecordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    anio: RawNumber = Field(default=None, validation_alias=AliasChoices("anio", "year"))
    mes: RawNumber = Field(default=None, validation_alias=AliasChoices("mes", "month"))
    valor: RawNumber = Field(default=None, validation_alias=AliasChoices("valor", "value"))
    es_meta: bool = Field(default=False, validation_alias=AliasChoices("es_meta", "is_meta"))
    escenario: str | None = Field(default=None, validation_alias=AliasChoices("escenario", "scenario"))


class TargetRecordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    anio: RawNumber = Field(default=None, validation_alias=AliasChoices("anio", "year"))
    mes: RawNumber = Field(default=None, validation_alias=AliasChoices("mes", "month"))
    escenario: str | None = Field(default=None, validation_alias=AliasChoices("escenario", "scenario"))
    valor: RawNumber = Field(default=None, validation_alias=AliasChoices("valor", "value"))


class IndicatorIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clave: str | None = Field(default=None, validation_alias=AliasChoices("clave", "code"))
    nombre: str | None = Field(default=None, validation_alias=AliasChoices("nombre", "name"))
    descripcion: str | None = Field(default=None, validation_alias=AliasChoices("descripcion", "description"))
    scenario_labels: dict[str, str] = Field(default_factory=dict)


class ComparisonInputs(BaseModel):
    history: list[HistoryRecordIn] = Field(default_factory=list)
    targets: list[TargetRecordIn] = Field(default_factory=list)
    scenario: str | None = None
    totals_strategy: TotalsStrategy = "sum"
    diff_scenario: str | None = None
    periods: int | None = Field(default=None, ge=0, le=36)
    current_year: int | None = Field(default=None, gt=0)
    indicator: IndicatorIn | None = None
    fallback_to_targets: bool = False


class ComparisonRequest(ComparisonInputs):
    type: ComparisonType


class BatchComparisonRequest(ComparisonInputs):
    types: list[ComparisonType] = Field(min_length=1)


class ComparisonRowOut(ORMModel):
    period: str
    label: str | None = None
    comparison_period: str | None = None
    current_value: float | None
    comparison_value: float | None = None
    reference_value: float | None = None
    diff: float | None = None
    pct: float | None = None
    is_forecast: bool = False


class ScenarioQuarterRowOut(ORMModel):
    period: str
    quarter: int
    values: dict[str, float | None]


class TotalsOut(ORMModel):
    current_value: float | None
    comparison_value: float | None
    reference_value: float | None
    diff: float | None
    pct: float | None


class ChartPointOut(ORMModel):
    period: str
    current: float | None = None
    comparison: float | None = None
    reference: float | None = None
    trend: float | None = None
    full_period: str | None = None
    comparison_period: str | None = None
    is_forecast: bool = False


class SeriesMetaOut(ORMModel):
    key: str
    name: str
    color: str
    renderer: str | None = None
    stroke_dasharray: str | None = None
    stroke_width: int | None = None
    dot: bool | None = None
    variant: str | None = None


class TableRowOut(ORMModel):
    kind: Literal["observed", "total", "forecast"]
    period: str
    label: str | None = None
    current_value: float | None
    comparison_value: float | None = None
    reference_value: float | None = None
    diff: float | None = None
    pct: float | None = None


class ForecastOut(ORMModel):
    method: str
    rows: list[ComparisonRowOut]
    totals: TotalsOut | None = None
    chart_points: list[ChartPointOut]
    series: SeriesMetaOut


class SummaryOut(ORMModel):
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


class AnalyticsResultOut(ORMModel):
    type: ComparisonType
    scenario: str | None = None
    current_year: int
    previous_year: int | None
    latest_month: int
    rows: list[ComparisonRowOut]
    totals: TotalsOut | None = None
    totals_strategy: TotalsStrategy
    forecast: ForecastOut | None = None
    comparison_label: str
    reference_label: str | None = None
    chart_data: list[ChartPointOut]
    chart_series: list[SeriesMetaOut]
    summary: SummaryOut | None = None
    meta_only: bool = False
    scenario_columns: list[str] = []
    scenario_rows: list[ScenarioQuarterRowOut] = []
    table_rows: list[TableRowOut] = []
    chart_overlay: list[ChartPointOut] = []


class ComparisonResponse(BaseModel):
    result: AnalyticsResultOut | None = None


class BatchComparisonResponse(BaseModel):
    results: dict[str, AnalyticsResultOut | None]


class ForecastRequest(BaseModel):
    series: list[RawNumber] = Field(default_factory=list)
    steps: int = Field(default=6, ge=0, le=36)
    method: Literal["auto", "linear"] = "auto"


class ForecastResponse(BaseModel):
    method: str | None = None
    values: list[float]
