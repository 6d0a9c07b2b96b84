"""Application configuration."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Smart Report API", description="Public API name")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./smart_report.db",
        description="Database connection URL"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Security
    secret_key: str = Field(
        default="change-this-to-a-random-secret-key-in-production",
        description="Secret key for JWT token signing"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=12, description="JWT token expiration in hours")

    # Calendar
    timezone: str = Field(
        default="UTC",
        description="IANA timezone defining the server-local calendar day"
    )

    # Dashboards
    organized_lookback_days: int = Field(
        default=60,
        description="How many days back the week-organized dashboard looks"
    )
    top_performers_limit: int = Field(
        default=3,
        description="Number of reporters listed in the weekly top performers"
    )
    default_page_size: int = Field(default=10, description="Default page size for report lists")

    # Mail delivery
    mail_api_key: str | None = Field(default=None, description="Transactional mail API key")
    mail_api_url: str = Field(
        default="https://api.resend.com/emails",
        description="Transactional mail HTTP endpoint"
    )
    mail_from: str = Field(
        default="Smart Report <no-reply@smart-report.local>",
        description="Sender address for notices"
    )

    # Development Settings
    debug: bool = Field(default=False, description="Debug mode (exposes error details)")
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("organized_lookback_days", "top_performers_limit", "jwt_expiration_hours")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer is positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("default_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Validate page size is within reasonable range."""
        if not 1 <= v <= 100:
            raise ValueError("default_page_size must be between 1 and 100")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# Global settings instance
settings = Settings()
