"""
Storage settings using Pydantic for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration for the snapshot database."""

    database_path: str = Field(
        default="./crypto_stats.db", description="Path to SQLite database file"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


storage_settings = StorageSettings()
