from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Indicator Analytics API"
    api_prefix: str = "/api/v1"
    debug: bool = False

    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60

    forecast_periods: int = 6
    forecast_min_points: int = 4
    forecast_season_length: int = 12
    holt_alpha: float = 0.5
    holt_beta: float = 0.3
    holt_winters_alpha: float = 0.4
    holt_winters_beta: float = 0.3
    holt_winters_gamma: float = 0.3

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
