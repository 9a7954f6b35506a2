"""Tests for Pydantic Settings configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import SecretStr

from rarefind.core.config import (
    AmazonSettings,
    EbaySettings,
    RapidAPISettings,
    Settings,
    get_settings,
)

if TYPE_CHECKING:
    import pytest


class TestAmazonSettings:
    """Tests for AmazonSettings."""

    def test_default_values(self) -> None:
        """AmazonSettings should default to PA-API in us-east-1, unconfigured."""
        settings = AmazonSettings()

        assert settings.region == "us-east-1"
        assert settings.api_source == "pa-api"
        assert settings.is_configured is False

    def test_is_configured_requires_all_credentials(self) -> None:
        """is_configured needs access key, secret key and associate tag."""
        partial = AmazonSettings(access_key="AK", secret_key=SecretStr("SK"))
        full = AmazonSettings(
            access_key="AK",
            secret_key=SecretStr("SK"),
            associate_tag="tag-20",
        )

        assert partial.is_configured is False
        assert full.is_configured is True

    def test_reads_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """AMAZON_* variables should populate the settings."""
        monkeypatch.setenv("AMAZON_ACCESS_KEY", "AK")
        monkeypatch.setenv("AMAZON_SECRET_KEY", "SK")
        monkeypatch.setenv("AMAZON_ASSOCIATE_TAG", "tag-20")
        monkeypatch.setenv("AMAZON_REGION", "eu-west-1")

        settings = AmazonSettings()

        assert settings.is_configured is True
        assert settings.region == "eu-west-1"
        assert settings.secret_key.get_secret_value() == "SK"

    def test_api_source_is_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """AMAZON_API_SOURCE=RapidAPI should select RapidAPI."""
        monkeypatch.setenv("AMAZON_API_SOURCE", "RapidAPI")

        assert AmazonSettings().api_source == "rapidapi"

    def test_unknown_api_source_means_paapi(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unrecognized sources should fall back to PA-API."""
        monkeypatch.setenv("AMAZON_API_SOURCE", "scraper")

        assert AmazonSettings().api_source == "pa-api"

    def test_secret_key_hidden_in_repr(self) -> None:
        """The secret key should not appear in the repr."""
        settings = AmazonSettings(secret_key=SecretStr("very-secret"))

        assert "very-secret" not in repr(settings)


class TestRapidAPISettings:
    """Tests for RapidAPISettings."""

    def test_default_values(self) -> None:
        """RapidAPISettings should default to the Real-Time Amazon Data host."""
        settings = RapidAPISettings()

        assert settings.host == "real-time-amazon-data.p.rapidapi.com"
        assert settings.country == "US"
        assert settings.is_configured is False

    def test_is_configured_with_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """RAPIDAPI_KEY should configure the client."""
        monkeypatch.setenv("RAPIDAPI_KEY", "rk")

        assert RapidAPISettings().is_configured is True


class TestEbaySettings:
    """Tests for EbaySettings."""

    def test_default_values(self) -> None:
        """EbaySettings should default to the US site, unconfigured."""
        settings = EbaySettings()

        assert settings.site_id == "US"
        assert settings.is_configured is False

    def test_site_prefix_is_stripped(self) -> None:
        """Both 'US' and 'EBAY-US' should be accepted."""
        assert EbaySettings(site_id="EBAY-GB").site_id == "GB"
        assert EbaySettings(site_id="de").site_id == "DE"

    def test_is_configured_with_app_id(self) -> None:
        """An App ID is all the Finding API needs."""
        assert EbaySettings(app_id="app").is_configured is True


class TestSettings:
    """Tests for main Settings class."""

    def test_default_values(self) -> None:
        """Settings should have sensible defaults."""
        settings = Settings()

        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.http_timeout == 30.0
        assert settings.is_production is False

    def test_nested_settings(self) -> None:
        """Settings should aggregate the marketplace sections."""
        settings = Settings()

        assert isinstance(settings.amazon, AmazonSettings)
        assert isinstance(settings.rapidapi, RapidAPISettings)
        assert isinstance(settings.ebay, EbaySettings)

    def test_is_production(self) -> None:
        """is_production should reflect the environment."""
        assert Settings(environment="production").is_production is True


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_cached_instance(self) -> None:
        """get_settings should return the same instance."""
        assert get_settings() is get_settings()
