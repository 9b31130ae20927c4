from fastapi import APIRouter, Depends

from indicator_analytics.api.deps import get_forecast_options
from indicator_analytics.schemas.analytics import (
    AnalyticsResultOut,
    BatchComparisonRequest,
    BatchComparisonResponse,
    ComparisonInputs,
    ComparisonRequest,
    ComparisonResponse,
    ForecastRequest,
    ForecastResponse,
)
from indicator_analytics.services.analytics import (
    AnalyticsOptions,
    AnalyticsResult,
    IndicatorDataset,
    compute_analytics,
)
from indicator_analytics.services.forecasting import ForecastOptions, forecast
from indicator_analytics.services.indicators import IndicatorProfile


router = APIRouter(tags=["analytics"])


def _dataset(payload: ComparisonInputs) -> IndicatorDataset:
    return IndicatorDataset(
        [row.model_dump() for row in payload.history],
        [row.model_dump() for row in payload.targets],
        fallback_to_targets=payload.fallback_to_targets,
    )


def _options(payload: ComparisonInputs, forecast_options: ForecastOptions) -> AnalyticsOptions:
    indicator = IndicatorProfile.from_raw(payload.indicator.model_dump()) if payload.indicator else None
    return AnalyticsOptions(
        scenario=payload.scenario,
        totals_strategy=payload.totals_strategy,
        diff_scenario=payload.diff_scenario,
        periods=payload.periods if payload.periods is not None else forecast_options.periods,
        current_year=payload.current_year,
        indicator=indicator,
        forecast=forecast_options,
    )


def _serialize(result: AnalyticsResult | None) -> AnalyticsResultOut | None:
    if result is None:
        return None
    return AnalyticsResultOut.model_validate(result)


@router.post("/analytics/comparison", response_model=ComparisonResponse)
def run_comparison(
    payload: ComparisonRequest,
    forecast_options: ForecastOptions = Depends(get_forecast_options),
) -> ComparisonResponse:
    result = compute_analytics(payload.type, _dataset(payload), _options(payload, forecast_options))
    return ComparisonResponse(result=_serialize(result))


@router.post("/analytics/comparisons", response_model=BatchComparisonResponse)
def run_comparisons(
    payload: BatchComparisonRequest,
    forecast_options: ForecastOptions = Depends(get_forecast_options),
) -> BatchComparisonResponse:
    dataset = _dataset(payload)
    options = _options(payload, forecast_options)
    return BatchComparisonResponse(
        results={
            comparison_type: _serialize(compute_analytics(comparison_type, dataset, options))
            for comparison_type in payload.types
        }
    )


@router.post("/analytics/forecast", response_model=ForecastResponse)
def run_forecast(
    payload: ForecastRequest,
    forecast_options: ForecastOptions = Depends(get_forecast_options),
) -> ForecastResponse:
    projection = forecast(payload.series, payload.steps, forecast_options, method=payload.method)
    return ForecastResponse(method=projection.method, values=projection.values)
