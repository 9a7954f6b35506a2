"""
Application configuration using Pydantic Settings.

Every marketplace credential is read from the environment (or a ``.env``
file). These settings are the constructor inputs of the marketplace layer;
nothing below reads ``os.environ`` directly.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AmazonAPISource = Literal["pa-api", "rapidapi"]


class AmazonSettings(BaseSettings):
    """Amazon Product Advertising API (PA-API 5.0) settings."""

    model_config = SettingsConfigDict(env_prefix="AMAZON_")

    access_key: str = Field(default="", description="AWS access key for PA-API")
    secret_key: SecretStr = Field(default=SecretStr(""), description="AWS secret key for PA-API")
    associate_tag: str = Field(default="", description="Amazon Associates partner tag")
    region: str = Field(default="us-east-1", description="PA-API region")
    api_source: AmazonAPISource = Field(
        default="pa-api",
        description="Which Amazon client to use: 'pa-api' or 'rapidapi'",
    )

    @field_validator("api_source", mode="before")
    @classmethod
    def normalize_api_source(cls, v: object) -> object:
        """Accept the source flag in any case; unknown values mean PA-API."""
        if isinstance(v, str):
            lowered = v.strip().lower()
            return "rapidapi" if lowered == "rapidapi" else "pa-api"
        return v

    @property
    def is_configured(self) -> bool:
        """Check if PA-API credentials are configured."""
        return bool(self.access_key and self.secret_key.get_secret_value() and self.associate_tag)


class RapidAPISettings(BaseSettings):
    """RapidAPI Real-Time Amazon Data settings."""

    model_config = SettingsConfigDict(env_prefix="RAPIDAPI_")

    key: SecretStr = Field(default=SecretStr(""), description="RapidAPI key")
    host: str = Field(
        default="real-time-amazon-data.p.rapidapi.com",
        description="RapidAPI host header value",
    )
    country: str = Field(default="US", description="Amazon storefront country code")

    @property
    def is_configured(self) -> bool:
        """Check if a RapidAPI key is configured."""
        return bool(self.key.get_secret_value())


class EbaySettings(BaseSettings):
    """eBay Finding API settings."""

    model_config = SettingsConfigDict(env_prefix="EBAY_")

    app_id: str = Field(default="", description="eBay App ID (SECURITY-APPNAME)")
    site_id: str = Field(default="US", description="eBay site, sent as GLOBAL-ID EBAY-<site>")

    @field_validator("site_id", mode="before")
    @classmethod
    def strip_site_prefix(cls, v: object) -> object:
        """Allow both 'US' and 'EBAY-US'."""
        if isinstance(v, str):
            value = v.strip().upper()
            return value.removeprefix("EBAY-") or "US"
        return v

    @property
    def is_configured(self) -> bool:
        """Check if the eBay App ID is configured."""
        return bool(self.app_id)


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates the marketplace sections with logging and HTTP options.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    http_timeout: float = Field(default=30.0, gt=0, description="Provider request timeout (s)")

    amazon: AmazonSettings = Field(default_factory=AmazonSettings)
    rapidapi: RapidAPISettings = Field(default_factory=RapidAPISettings)
    ebay: EbaySettings = Field(default_factory=EbaySettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Configured Settings instance, loaded once per process.
    """
    return Settings()
