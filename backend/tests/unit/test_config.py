"""Unit tests for configuration validation."""

import pytest
from pydantic import ValidationError
from backend.app.core.config import Settings


class TestSettingsValidation:
    """Test cases for Settings validation."""

    def test_default_settings(self):
        """Test that default settings are valid."""
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.organized_lookback_days == 60
        assert settings.top_performers_limit == 3
        assert settings.default_page_size == 10
        assert settings.database_url.startswith("sqlite+aiosqlite")

    def test_log_level_validation_valid(self):
        """Test log level accepts valid values."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        for level in valid_levels:
            settings = Settings(log_level=level)
            assert settings.log_level == level.upper()

    def test_log_level_validation_case_insensitive(self):
        """Test log level is case-insensitive."""
        settings = Settings(log_level="info")
        assert settings.log_level == "INFO"

        settings = Settings(log_level="DeBuG")
        assert settings.log_level == "DEBUG"

    def test_log_level_validation_invalid(self):
        """Test log level rejects invalid values."""
        with pytest.raises(ValidationError, match="log_level must be one of"):
            Settings(log_level="INVALID")

    def test_timezone_valid(self):
        settings = Settings(timezone="Africa/Lagos")
        assert settings.tzinfo.key == "Africa/Lagos"

    def test_timezone_invalid(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            Settings(timezone="Mars/Olympus_Mons")

    def test_lookback_days_positive(self):
        """Test organized_lookback_days must be positive."""
        with pytest.raises(ValidationError, match="Value must be positive"):
            Settings(organized_lookback_days=0)

        with pytest.raises(ValidationError, match="Value must be positive"):
            Settings(organized_lookback_days=-5)

    def test_top_performers_limit_positive(self):
        with pytest.raises(ValidationError, match="Value must be positive"):
            Settings(top_performers_limit=0)

    def test_page_size_range(self):
        """Test default_page_size stays within 1..100."""
        with pytest.raises(ValidationError, match="default_page_size must be between 1 and 100"):
            Settings(default_page_size=0)

        with pytest.raises(ValidationError, match="default_page_size must be between 1 and 100"):
            Settings(default_page_size=101)

        assert Settings(default_page_size=100).default_page_size == 100

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test,")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
