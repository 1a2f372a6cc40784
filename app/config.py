from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./rental.db",
        alias="DATABASE_URL"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # CORS - Frontend URLs from environment (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        alias="ALLOWED_ORIGINS"
    )

    # ==============================================
    # Email notifications (Resend HTTP API)
    # ==============================================
    email_enabled: bool = Field(default=True, alias="EMAIL_ENABLED")

    # Without an API key messages are logged instead of sent
    resend_api_key: str = Field(default="", alias="RESEND_API_KEY")
    resend_base_url: str = Field(default="https://api.resend.com", alias="RESEND_BASE_URL")
    booking_email_from: str = Field(
        default="Bookings <bookings@example.com>",
        alias="BOOKING_EMAIL_FROM"
    )
    email_timeout_seconds: int = Field(default=10, alias="EMAIL_TIMEOUT_SECONDS")

    # Comma-separated domains that never receive mail (e2e test accounts)
    email_suppressed_domains: str = Field(
        default="e2e-testing.example.com",
        alias="EMAIL_SUPPRESSED_DOMAINS"
    )

    # Used to build links to the host dashboard in emails
    public_base_url: str = Field(default="http://localhost:3000", alias="PUBLIC_BASE_URL")

    # ==============================================
    # Booking engine behaviour
    # ==============================================
    # Missing inventory rows contribute 0 to a quote unless this is enabled
    pricing_fallback_to_listing_price: bool = Field(
        default=False,
        alias="PRICING_FALLBACK_TO_LISTING_PRICE"
    )

    # Off: updating a booking's dates leaves the calendar untouched
    alteration_reconciles_inventory: bool = Field(
        default=False,
        alias="ALTERATION_RECONCILES_INVENTORY"
    )

    default_time_zone: str = Field(default="UTC", alias="DEFAULT_TIME_ZONE")

    # ==============================================
    # Rate limiting (slowapi)
    # ==============================================
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")
    booking_request_rate_limit: str = Field(default="30/minute", alias="BOOKING_REQUEST_RATE_LIMIT")

    @field_validator('default_time_zone')
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        """Reject unknown IANA zone names at startup"""
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def email_transport_configured(self) -> bool:
        return bool(self.email_enabled and self.resend_api_key)

    @property
    def suppressed_email_domains(self) -> List[str]:
        return [
            d.strip().lower().lstrip("@")
            for d in self.email_suppressed_domains.split(",")
            if d.strip()
        ]

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        if not self.allowed_origins:
            return ["http://localhost:3000"]

        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        return origins or ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Initialize settings on module load
settings = get_settings()
