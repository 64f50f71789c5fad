"""
API-specific data models for the crypto stats application.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class StatsResponse(BaseModel):
    """Latest stats for a coin."""

    model_config = ConfigDict(populate_by_name=True)

    price: Annotated[float, Field(description="Price in USD")]
    market_cap: Annotated[
        float, Field(alias="marketCap", description="Market cap in USD")
    ]
    change_24h: Annotated[
        float, Field(alias="24hChange", description="24 hour change, percent")
    ]


class DeviationResponse(BaseModel):
    """Standard deviation of recent prices for a coin."""

    model_config = ConfigDict(populate_by_name=True)

    coin: Annotated[str, Field(description="Coin identifier")]
    standard_deviation: Annotated[
        float,
        Field(
            alias="standardDeviation",
            ge=0,
            description="Population standard deviation, rounded to 2 decimals",
        ),
    ]


class ErrorResponse(BaseModel):
    """Model for error responses."""

    model_config = ConfigDict(str_strip_whitespace=True)

    error: Annotated[str, Field(description="Human-readable error message")]
