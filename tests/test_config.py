"""
Tests for settings validation.
"""
import pytest
from pydantic import ValidationError

from recipe_catalog.core.config import Settings

VALID_SECRET = "a-sufficiently-long-secret-key-for-tests"


class TestSettings:
    """Tests for Settings validators and derived values."""

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY="too-short")

    def test_insecure_default_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY="your-super-secret-key-change-in-production")

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=VALID_SECRET, METRICS_TIMEZONE="Mars/Olympus")

    def test_slug_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY=VALID_SECRET, SLUG_MAX_ATTEMPTS=0)

    def test_cors_origins_split(self):
        settings = Settings(JWT_SECRET_KEY=VALID_SECRET, CORS_ORIGINS="https://a.example, https://b.example")

        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    def test_development_flag(self):
        assert Settings(JWT_SECRET_KEY=VALID_SECRET, ENVIRONMENT="Development").is_development is True
        assert Settings(JWT_SECRET_KEY=VALID_SECRET, ENVIRONMENT="production").is_development is False
