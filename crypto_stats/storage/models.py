"""
Storage data models for the crypto stats application.
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..shared.coins import VALID_COINS, valid_coins_display


class Snapshot(BaseModel):
    """One immutable price observation for a coin."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
    )

    coin_id: Annotated[str, Field(description="Coin identifier")]
    price: Annotated[float, Field(ge=0, description="Price in USD")]
    market_cap: Annotated[float, Field(ge=0, description="Market cap in USD")]
    change_24h: Annotated[float, Field(description="24 hour change, percent")]
    observed_at: Annotated[datetime, Field(description="Observation timestamp")]

    @field_validator("coin_id")
    @classmethod
    def validate_coin_id(cls, value: str) -> str:
        if value not in VALID_COINS:
            raise ValueError(
                f"coin_id must be one of: {valid_coins_display()}, got {value!r}"
            )
        return value

    @field_validator("observed_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC and normalize aware ones to UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @field_serializer("observed_at")
    def serialize_observed_at(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()
