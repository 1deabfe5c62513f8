from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Root for the JSON store and the API response cache.
    DIVTRACK_DATA_DIR: str = "data"
    # API response cache; defaults to <data_dir>/cache.
    DIVTRACK_CACHE_DIR: str | None = None

    # Dividend database REST endpoint. Unset means offline (local catalog only).
    DIVTRACK_API_BASE_URL: str | None = None
    DIVTRACK_OFFLINE: bool = False
    DIVTRACK_API_TIMEOUT: float = 15.0
    DIVTRACK_API_MAX_RETRIES: int = 2
    DIVTRACK_API_RETRY_DELAY: float = 1.0

    # Annualized return assumed for symbols without a historical figure.
    DIVTRACK_DEFAULT_RETURN: float = 0.08

    @property
    def data_dir(self) -> Path:
        return Path(self.DIVTRACK_DATA_DIR)

    @property
    def store_dir(self) -> Path:
        return self.data_dir / "store"

    @property
    def cache_dir(self) -> Path:
        return Path(self.DIVTRACK_CACHE_DIR) if self.DIVTRACK_CACHE_DIR else self.data_dir / "cache"

    @property
    def api_base_url(self) -> str | None:
        url = (self.DIVTRACK_API_BASE_URL or "").strip()
        return url.rstrip("/") or None

    @property
    def offline(self) -> bool:
        return bool(self.DIVTRACK_OFFLINE) or self.api_base_url is None

    @property
    def api_timeout(self) -> float:
        return float(self.DIVTRACK_API_TIMEOUT)

    @property
    def api_max_retries(self) -> int:
        return max(0, int(self.DIVTRACK_API_MAX_RETRIES))

    @property
    def api_retry_delay(self) -> float:
        return max(0.0, float(self.DIVTRACK_API_RETRY_DELAY))

    @property
    def default_return(self) -> float:
        return float(self.DIVTRACK_DEFAULT_RETURN)


class ProjectionConfig(BaseModel):
    # Trailing ~10y annualized returns used by the goal calculator.
    historical_returns: dict[str, float] = Field(
        default_factory=lambda: {
            "0050": 0.09,
            "2330": 0.15,
        }
    )
    default_return: float = 0.08

    # Rate used for quick forecasts when a plan carries no stored projection.
    fallback_forecast_rate: float = 0.09


class CacheConfig(BaseModel):
    price_cache_max_size: int = 1000


def load_settings() -> Settings:
    return Settings()


def projection_config(settings: Settings | None = None) -> ProjectionConfig:
    if settings is None:
        return ProjectionConfig()
    return ProjectionConfig(default_return=settings.default_return)
