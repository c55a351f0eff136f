"""
Pricing Engine Configuration.
Source: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

import json
from typing import Annotated, Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from pricing_engine.core.enums import IntegrationMode


class PricingSettings(BaseSettings):
    """
    Pricing engine settings loaded from environment variables.

    All settings are prefixed with PRICING_ (e.g. PRICING_LOG_LEVEL).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="PRICING_",
    )

    # =========================================================================
    # Application Settings
    # =========================================================================
    ENVIRONMENT: Literal["development", "staging", "production", "testing"] = Field(
        default="development",
        description="Environment: development, staging, production, testing",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    JSON_LOGS: bool = Field(default=False, description="Emit logs as JSON lines")
    LOG_FILE: Optional[str] = Field(
        default=None,
        description="Also write rotated logs to this file",
    )

    # =========================================================================
    # Reference Data Source
    # =========================================================================
    INTEGRATION_MODE: IntegrationMode = Field(
        default=IntegrationMode.DEMO,
        description="Integration mode: demo (in-memory) or live (pricing data service)",
    )
    DATA_SERVICE_URL: str = Field(
        default="http://localhost:8080",
        description="Base URL of the external pricing data service",
    )
    DATA_SERVICE_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for reference data lookups",
    )

    # =========================================================================
    # Money
    # =========================================================================
    CURRENCY_CODE: str = Field(default="EGP", min_length=3, max_length=3)
    MONEY_DECIMAL_PLACES: int = Field(
        default=2,
        ge=0,
        le=4,
        description="Minor unit of the currency in use",
    )

    # =========================================================================
    # API
    # =========================================================================
    BATCH_MAX_ITEMS: int = Field(
        default=100,
        ge=1,
        description="Maximum calculations accepted in one batch request",
    )
    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Accept a JSON list or a comma-separated string."""
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("["):
                return json.loads(text)
            return [origin.strip() for origin in text.split(",") if origin.strip()]
        return v

    @field_validator("CURRENCY_CODE")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    @property
    def is_demo_mode(self) -> bool:
        """Check if running in demo mode."""
        return self.INTEGRATION_MODE == IntegrationMode.DEMO


# Singleton instance
_pricing_settings: Optional[PricingSettings] = None


def get_pricing_settings() -> PricingSettings:
    """
    Get cached pricing settings instance.

    Returns:
        PricingSettings instance
    """
    global _pricing_settings
    if _pricing_settings is None:
        _pricing_settings = PricingSettings()
    return _pricing_settings


def reset_pricing_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _pricing_settings
    _pricing_settings = None
