"""
Ingestion settings using Pydantic for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Ingestion job configuration using Pydantic settings."""

    coingecko_api_url: str = Field(
        default="https://api.coingecko.com/api/v3/simple/price",
        description="CoinGecko simple price endpoint",
    )

    vs_currency: str = Field(default="usd", description="Quote currency")

    ingestion_interval: int = Field(
        default=7200, description="Interval in seconds between ingestion runs"
    )

    align_to_wall_clock: bool = Field(
        default=True,
        description="Fire on UTC multiples of the interval instead of relative to start",
    )

    request_timeout: float = Field(
        default=10.0, description="Timeout in seconds for the price API request"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


ingestion_settings = IngestionSettings()
