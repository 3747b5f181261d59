from decimal import Decimal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from .env
    model_config = SettingsConfigDict(
        env_file=(".env",),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="bizledger", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Infrastructure
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )

    # Managed backend (PostgREST-style RPC)
    BACKEND_BASE_URL: str = Field(
        default="http://localhost:54321",
        validation_alias=AliasChoices("BACKEND_BASE_URL", "backend_base_url"),
    )
    BACKEND_API_KEY: str = Field(default="", validation_alias=AliasChoices("BACKEND_API_KEY", "backend_api_key"))
    BACKEND_TIMEOUT: float = Field(default=30.0, validation_alias=AliasChoices("BACKEND_TIMEOUT", "backend_timeout"))

    # Tax / ledger rules
    DEFAULT_GST_RATE: Decimal = Field(
        default=Decimal("18"),
        validation_alias=AliasChoices("DEFAULT_GST_RATE", "default_gst_rate"),
    )
    BALANCE_TOLERANCE: Decimal = Field(
        default=Decimal("0.01"),
        validation_alias=AliasChoices("BALANCE_TOLERANCE", "balance_tolerance"),
    )

    # Cache TTLs (seconds)
    TAX_RATE_CACHE_TTL: int = Field(
        default=24 * 60 * 60,
        validation_alias=AliasChoices("TAX_RATE_CACHE_TTL", "tax_rate_cache_ttl"),
    )
    DRAFT_TTL_SECONDS: int = Field(
        default=7 * 24 * 60 * 60,
        validation_alias=AliasChoices("DRAFT_TTL_SECONDS", "draft_ttl_seconds"),
    )

    # Date auto-fill
    INVOICE_DUE_DAYS: int = Field(default=20, validation_alias=AliasChoices("INVOICE_DUE_DAYS", "invoice_due_days"))
    ESTIMATE_EXPIRY_DAYS: int = Field(
        default=30,
        validation_alias=AliasChoices("ESTIMATE_EXPIRY_DAYS", "estimate_expiry_days"),
    )


settings = Settings()
