from fastapi import Depends

from indicator_analytics.core.config import Settings, get_settings
from indicator_analytics.services.forecasting import ForecastOptions


def get_forecast_options(settings: Settings = Depends(get_settings)) -> ForecastOptions:
    return ForecastOptions(
        periods=settings.forecast_periods,
        min_points=settings.forecast_min_points,
        season_length=settings.forecast_season_length,
        linear_alpha=settings.holt_alpha,
        linear_beta=settings.holt_beta,
        alpha=settings.holt_winters_alpha,
        beta=settings.holt_winters_beta,
        gamma=settings.holt_winters_gamma,
    )
